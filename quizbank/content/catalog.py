"""
Administrative operations on the curated topic catalog (quiz_topic).

Unlike re-imports, these are explicit administrator actions and may lower
the industry-specific flag.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from quizbank.db.database import Database
from quizbank.db.models import QuizTopic

CSV_COLUMNS = ["slug", "name", "industry_specific"]


@dataclass
class CategoryUpdateResult:
    """Per-item outcome of a bulk category update."""

    updated: int = 0
    results: list[dict] = field(default_factory=list)


def slugify(name: str) -> str:
    """Derive a slug from a display name (``Adobe Acrobat`` -> ``adobe-acrobat``)."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _parse_flag(value: object) -> bool | None:
    """Accept 0/1 (int or str) and booleans; anything else is invalid."""
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip() in ("0", "1"):
        return value.strip() == "1"
    return None


class TopicCatalog:
    """Maintain curated names and categories."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def export_csv(self, path: Path | str) -> int:
        """Write every quiz_topic row as ``slug,name,industry_specific``; returns row count."""
        path = Path(path)
        with self.db.read_session() as session:
            rows = session.execute(select(QuizTopic).order_by(QuizTopic.name.asc())).scalars().all()

            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(CSV_COLUMNS)
                for row in rows:
                    writer.writerow([row.slug, row.name or "", int(row.industry_specific)])

        logger.info(f"Exported {len(rows)} topics to {path}")
        return len(rows)

    def import_csv(self, path: Path | str) -> int:
        """
        Load curated rows from CSV, overwriting name and category.

        Requires ``name`` and ``industry_specific`` columns; a blank slug is
        derived from the name. Rows without a name are skipped.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        with path.open(encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            header = reader.fieldnames or []
            for required in ("name", "industry_specific"):
                if required not in header:
                    raise ValueError(f"Missing required column: {required}")
            records = list(reader)

        imported = 0
        with self.db.session_scope() as session:
            for record in records:
                name = (record.get("name") or "").strip()
                if not name:
                    continue
                slug = (record.get("slug") or "").strip().lower() or slugify(name)
                flag = _parse_flag(record.get("industry_specific")) or False

                row = self._get_or_create(session, slug)
                row.name = name
                row.industry_specific = flag
                session.flush()
                imported += 1

        logger.info(f"Imported {imported} topics from {path}")
        return imported

    def bulk_update_category(self, updates: list[dict]) -> CategoryUpdateResult:
        """
        Set industry_specific for many slugs in one transaction.

        Each update is ``{"slug": str, "industry_specific": 0|1}``. Invalid
        entries are reported and skipped; unknown slugs are created with no name.
        """
        result = CategoryUpdateResult()

        with self.db.session_scope() as session:
            for update in updates:
                slug = update.get("slug")
                flag = _parse_flag(update.get("industry_specific"))
                if not slug or flag is None:
                    result.results.append(
                        {"slug": slug, "success": False, "error": "Invalid slug or industry_specific value"}
                    )
                    continue

                row = self._get_or_create(session, slug.strip().lower())
                row.industry_specific = flag
                session.flush()
                result.results.append({"slug": slug, "success": True})
                result.updated += 1

        logger.info(f"Updated category of {result.updated} topics")
        return result

    def rename_topic(self, slug: str, name: str) -> None:
        """Set the curated display name, creating the row as technical if needed."""
        with self.db.session_scope() as session:
            row = self._get_or_create(session, slug.strip().lower())
            row.name = name

    @staticmethod
    def _get_or_create(session: Session, slug: str) -> QuizTopic:
        row = session.execute(select(QuizTopic).where(QuizTopic.slug == slug)).scalar_one_or_none()
        if row is None:
            row = QuizTopic(slug=slug, name=None, industry_specific=False)
            session.add(row)
        return row
