"""
Data integrity validation for curated topic records.

Detects two historical corruptions in quiz_topic:
- slugs that are not lowercase
- names that are an uppercased slug (``BASH``, ``ADOBE-ACROBAT``)

``validate`` only reports; ``fix`` repairs inside one transaction.
"""
from __future__ import annotations

import re

from loguru import logger
from sqlalchemy import select

from quizbank.content.topic_names import slug_to_name
from quizbank.db.database import Database
from quizbank.db.models import QuizTopic, Topic
from quizbank.db.schemas import IntegrityFixResult, IntegrityIssue, IntegrityRepair, IntegrityReport

_SEPARATORS = re.compile(r"[-_]")


def _is_uppercased(name: str | None) -> bool:
    return bool(name) and name.isupper() and len(name) > 3


def _is_uppercased_slug(name: str | None, slug: str | None) -> bool:
    """Name is all-caps and equals the slug once separators are stripped."""
    if not name or not slug or not name.isupper():
        return False
    return _SEPARATORS.sub("", name).lower() == _SEPARATORS.sub("", slug).lower()


class IntegrityValidator:
    """Scan and repair quiz_topic rows."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def validate(self) -> IntegrityReport:
        """Collect issues without changing anything."""
        issues = []

        with self.db.read_session() as session:
            topics = session.execute(select(QuizTopic).order_by(QuizTopic.slug)).scalars().all()

            for topic in topics:
                if topic.slug and topic.slug != topic.slug.lower():
                    issues.append(
                        IntegrityIssue(
                            type="uppercase_slug",
                            slug=topic.slug,
                            name=topic.name,
                            message=f"Topic slug should be lowercase: {topic.slug}",
                        )
                    )
                if _is_uppercased(topic.name):
                    issues.append(
                        IntegrityIssue(
                            type="uppercase_name",
                            slug=topic.slug,
                            name=topic.name,
                            message=f"Topic name appears to be incorrectly uppercased: {topic.name}",
                        )
                    )

        if issues:
            logger.warning(f"Integrity check found {len(issues)} issues in {len(topics)} topics")
        return IntegrityReport(valid=not issues, issues=issues, topic_count=len(topics))

    def fix(self) -> IntegrityFixResult:
        """
        Repair detected issues.

        - Non-lowercase slug: lowercased, unless the lowercase slug already
          exists, in which case this row is deleted as a duplicate.
        - Uppercased-slug name: replaced by the topic table's name when that
          one is not uppercased, else regenerated from the slug.

        Any failure rolls back every repair of the pass.
        """
        details: list[IntegrityRepair] = []

        with self.db.session_scope() as session:
            topics = session.execute(select(QuizTopic).order_by(QuizTopic.id)).scalars().all()

            for row in topics:
                old_slug, old_name = row.slug, row.name
                new_slug, new_name = old_slug, old_name

                if old_slug and old_slug != old_slug.lower():
                    new_slug = old_slug.lower()
                    duplicate = session.execute(
                        select(QuizTopic.id).where(QuizTopic.slug == new_slug, QuizTopic.id != row.id)
                    ).first()
                    if duplicate:
                        session.delete(row)
                        session.flush()
                        details.append(
                            IntegrityRepair(
                                action="deleted_duplicate",
                                old_slug=old_slug,
                                old_name=old_name,
                                reason=f"Lowercase slug '{new_slug}' already exists",
                            )
                        )
                        continue

                if _is_uppercased_slug(old_name, new_slug):
                    better = session.execute(
                        select(Topic.name).where(Topic.slug == new_slug)
                    ).scalar_one_or_none()
                    if better and not better.isupper():
                        new_name = better
                    else:
                        new_name = slug_to_name(new_slug)

                if (new_slug, new_name) != (old_slug, old_name):
                    row.slug = new_slug
                    row.name = new_name
                    session.flush()
                    details.append(
                        IntegrityRepair(
                            action="updated",
                            old_slug=old_slug,
                            old_name=old_name,
                            new_slug=new_slug,
                            new_name=new_name,
                        )
                    )

        logger.info(f"Integrity fix applied {len(details)} repairs")
        return IntegrityFixResult(fixed_count=len(details), details=details)
