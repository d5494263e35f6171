"""
Quiz importer - persists a parsed quiz document into the content store.

One import run:
1. Upserts the Source and records a new ImportBatch (content hash, parser version)
2. Resolves the topic display name (import-time priority)
3. Upserts Topic and the curated QuizTopic row (fill-only name, no flag downgrade)
4. Creates a Quiz for this batch
5. Parses the document; zero questions aborts the run
6. Upserts each Question by external UID and replaces its Choices

Steps 1-6 share one transaction, so a failure leaves the store as it was.
"""

from __future__ import annotations

import hashlib
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from quizbank.db.database import Database
from quizbank.db.models import Choice, ImportBatch, Question, Quiz, QuizTopic, Source, Topic
from quizbank.exceptions import NameResolutionError, ParseError, QuizbankError, TransactionError

from .parser import MarkdownParser, ParsedQuestion, normalize_line_endings
from .scanner import scan_local_repo
from .topic_names import TopicNameResolver, extract_topic_name


@dataclass
class ImportOutcome:
    """Result of a successful import run."""

    quiz_id: int
    question_count: int
    quiz_slug: str = ""
    topic_slug: str = ""
    topic_name: str = ""
    batch_id: int | None = None
    external_uids: list[str] = field(default_factory=list)


@dataclass
class ReloadSummary:
    """Result of a bulk reload from the local corpus."""

    total: int = 0
    results: list[ImportOutcome] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)


def content_hash(text: str) -> str:
    """sha256 of the document, used for change detection."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def external_uid(slug: str, number_in_source: int, pinned_commit: str) -> str:
    """Idempotency key of a question: ``{slug}#Q{n}@{commit}``."""
    return f"{slug}#Q{number_in_source}@{pinned_commit}"


class QuizImporter:
    """
    Import quiz markdown documents into the content store.

    Imports of the same topic are serialized with a per-slug lock; different
    topics may be imported concurrently.
    """

    def __init__(
        self,
        db: Database,
        settings: Settings | None = None,
        parser: MarkdownParser | None = None,
        resolver: TopicNameResolver | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.parser = parser or MarkdownParser()
        self.resolver = resolver or TopicNameResolver()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ========================================
    # Main Import Methods
    # ========================================

    def import_document(
        self,
        text: str,
        slug: str,
        provided_name: str | None = None,
        industry_specific: bool = False,
        pinned_commit: str | None = None,
        source_path: str | None = None,
        source_name: str | None = None,
    ) -> ImportOutcome:
        """
        Import one quiz document.

        Args:
            text: Raw markdown
            slug: Topic slug (lowercased before use)
            provided_name: Caller-supplied display name, lowest priority
            industry_specific: Request the industry-specific category
            pinned_commit: Corpus version scoping the external UIDs
            source_path: Originating file path, recorded in the batch notes
            source_name: Source name override (default from settings)

        Returns:
            ImportOutcome with the new quiz id and question count

        Raises:
            NameResolutionError: slug missing
            ParseError: document contains no questions
            TransactionError: a write failed
        """
        if not slug or not slug.strip() or slug.strip().lower() == "null":
            raise NameResolutionError(f"Invalid topic slug: {slug!r}")

        slug = slug.strip().lower()
        commit = pinned_commit or self.settings.quiz_commit
        text = normalize_line_endings(text)

        with self._topic_lock(slug):
            logger.info(f"Importing topic '{slug}' at {commit}")
            try:
                with self.db.session_scope() as session:
                    outcome = self._run(
                        session,
                        text=text,
                        slug=slug,
                        provided_name=provided_name,
                        industry_specific=industry_specific,
                        commit=commit,
                        source_path=source_path,
                        source_name=source_name or self.settings.source_name,
                    )
            except ParseError:
                logger.error(f"Import of '{slug}' failed: zero questions parsed")
                raise
            except SQLAlchemyError as e:
                logger.error(f"Import of '{slug}' failed during persistence: {e}")
                raise TransactionError(
                    f"Import of '{slug}' rolled back: {e}", slug=slug
                ) from e

        logger.info(
            f"Imported {outcome.question_count} questions into quiz '{outcome.quiz_slug}'"
        )
        return outcome

    def import_file(
        self,
        path: Path | str,
        slug: str | None = None,
        provided_name: str | None = None,
        industry_specific: bool = False,
        pinned_commit: str | None = None,
        source_name: str | None = None,
    ) -> ImportOutcome:
        """Import a quiz document from disk; slug defaults to the file stem without ``-quiz``."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Quiz file not found: {path}")

        if slug is None:
            stem = path.stem
            slug = stem[: -len("-quiz")] if stem.endswith("-quiz") else stem

        return self.import_document(
            path.read_text(encoding="utf-8"),
            slug=slug,
            provided_name=provided_name,
            industry_specific=industry_specific,
            pinned_commit=pinned_commit,
            source_path=str(path),
            source_name=source_name,
        )

    def reload_all(
        self,
        root: Path | str | None = None,
        pinned_commit: str | None = None,
    ) -> ReloadSummary:
        """
        Re-import every topic found in the local corpus.

        The curated industry-specific flag of each topic is passed through
        unchanged. A failing topic is recorded and the rest continue.
        """
        start = time.monotonic()
        root = root or self.settings.quiz_repo_root
        local_topics = scan_local_repo(root)
        summary = ReloadSummary(total=len(local_topics))

        if not local_topics:
            logger.warning(f"No local topic files found in {root}")
            return summary

        for local in local_topics:
            try:
                industry = self._curated_industry_flag(local.slug)
                outcome = self.import_file(
                    local.file,
                    slug=local.slug,
                    provided_name=local.name,
                    industry_specific=industry,
                    pinned_commit=pinned_commit,
                    source_name=self.settings.local_source_name,
                )
                summary.results.append(outcome)
            except (QuizbankError, OSError, UnicodeDecodeError) as e:
                logger.error(f"Reload failed for {local.slug}: {e}")
                summary.errors.append({"slug": local.slug, "error": str(e)})

        summary.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"Reload complete: {summary.succeeded}/{summary.total} topics in {summary.duration_ms}ms"
        )
        return summary

    # ========================================
    # Import Steps
    # ========================================

    def _run(
        self,
        session: Session,
        text: str,
        slug: str,
        provided_name: str | None,
        industry_specific: bool,
        commit: str,
        source_path: str | None,
        source_name: str,
    ) -> ImportOutcome:
        source = self._upsert_source(session, source_name, commit)
        batch = self._create_batch(session, source, text, commit, source_path)

        topic = session.execute(
            select(Topic).where(Topic.slug == slug).with_for_update()
        ).scalar_one_or_none()

        topic_name = self.resolver.resolve_for_import(
            slug,
            extracted=extract_topic_name(text),
            stored=topic.name if topic else None,
            provided=provided_name,
        )

        topic = self._upsert_topic(session, topic, slug, topic_name, industry_specific)
        self._merge_quiz_topic(session, slug, topic_name, industry_specific)
        quiz = self._create_quiz(session, topic, source, batch, commit)

        document = self.parser.parse(text, topic_override=topic_name)
        if not document.questions:
            raise ParseError(
                f"Zero questions parsed for '{slug}'", slug=slug, question_count=0
            )

        uids = []
        for parsed in document.questions:
            uid = self._store_question(session, quiz, slug, commit, parsed)
            if uid in uids:
                logger.warning(
                    f"Duplicate question number Q{parsed.number_in_source} in '{slug}': "
                    f"{uid} superseded by the block at position {parsed.position}"
                )
            uids.append(uid)

        return ImportOutcome(
            quiz_id=quiz.id,
            question_count=len(uids),
            quiz_slug=quiz.slug,
            topic_slug=slug,
            topic_name=topic_name,
            batch_id=batch.id,
            external_uids=uids,
        )

    def _upsert_source(self, session: Session, name: str, commit: str) -> Source:
        source = session.execute(select(Source).where(Source.name == name)).scalar_one_or_none()
        if source:
            return source

        repo_url = self.settings.repo_url
        source = Source(
            name=name,
            repo_url=repo_url,
            source_url=repo_url,
            license_spdx=self.settings.license_spdx,
            attribution=f"{name} - {repo_url} (commit {commit})",
            commit_sha=commit,
        )
        session.add(source)
        session.flush()
        logger.debug(f"Created source '{name}' (id={source.id})")
        return source

    def _create_batch(
        self,
        session: Session,
        source: Source,
        text: str,
        commit: str,
        source_path: str | None,
    ) -> ImportBatch:
        batch = ImportBatch(
            source_id=source.id,
            parser_version=self.settings.parser_version,
            raw_hash=content_hash(text),
            notes=f"Imported {source_path or 'unknown'} at {commit}",
        )
        session.add(batch)
        session.flush()
        return batch

    def _upsert_topic(
        self,
        session: Session,
        topic: Topic | None,
        slug: str,
        name: str,
        industry_specific: bool,
    ) -> Topic:
        if topic is None:
            topic = Topic(slug=slug, name=name, industry_specific=industry_specific)
            session.add(topic)
            session.flush()
            logger.debug(f"Created topic '{slug}' as '{name}'")
            return topic

        if topic.name != name:
            logger.debug(f"Topic '{slug}' renamed '{topic.name}' -> '{name}'")
            topic.name = name
        if industry_specific:
            topic.industry_specific = True
        session.flush()
        return topic

    def _merge_quiz_topic(
        self, session: Session, slug: str, name: str, industry_specific: bool
    ) -> None:
        """Fill a missing curated name; raise but never lower the industry flag."""
        existing = session.execute(
            select(QuizTopic).where(QuizTopic.slug == slug)
        ).scalar_one_or_none()

        if existing is None:
            session.add(QuizTopic(slug=slug, name=name, industry_specific=industry_specific))
            session.flush()
            return

        stored_name = (existing.name or "").strip()
        if not stored_name or stored_name.lower() == "null":
            existing.name = name

        if industry_specific and not existing.industry_specific:
            existing.industry_specific = True
        elif not industry_specific and existing.industry_specific:
            logger.debug(f"Keeping '{slug}' industry-specific; re-import does not downgrade")

        session.flush()

    def _create_quiz(
        self,
        session: Session,
        topic: Topic,
        source: Source,
        batch: ImportBatch,
        commit: str,
    ) -> Quiz:
        slug = topic.slug
        taken = session.execute(select(Quiz.id).where(Quiz.slug == slug)).first()
        if taken:
            slug = f"{topic.slug}-{batch.id}"

        capitalized = topic.slug[:1].upper() + topic.slug[1:]
        quiz = Quiz(
            topic_id=topic.id,
            source_id=source.id,
            import_batch_id=batch.id,
            title=f"{capitalized} Quiz ({commit})",
            slug=slug,
        )
        session.add(quiz)
        session.flush()
        return quiz

    def _store_question(
        self,
        session: Session,
        quiz: Quiz,
        slug: str,
        commit: str,
        parsed: ParsedQuestion,
    ) -> str:
        """Insert or fully supersede the question keyed by its external UID, then replace its choices."""
        uid = external_uid(slug, parsed.number_in_source, commit)
        question_type = (parsed.question_type or "").strip() or parsed.inferred_type

        question = session.execute(
            select(Question).where(Question.external_uid == uid)
        ).scalar_one_or_none()

        if question is None:
            question = Question(external_uid=uid)
            session.add(question)

        question.quiz_id = quiz.id
        question.number_in_source = parsed.number_in_source
        question.question_type = question_type
        question.prompt_md = parsed.prompt_md
        question.code_md = parsed.code_md
        question.code_language = parsed.code_language
        question.explanation_md = parsed.explanation_md
        question.difficulty = None
        question.reference_url = parsed.reference_url
        question.position = parsed.position
        question.active = True
        session.flush()

        session.execute(delete(Choice).where(Choice.question_id == question.id))
        for position, choice in enumerate(parsed.choices, start=1):
            session.add(
                Choice(
                    question_id=question.id,
                    label_md=choice.label_md,
                    is_correct=choice.is_correct,
                    position=position,
                )
            )
        session.flush()

        logger.debug(f"Stored {uid} with {len(parsed.choices)} choices")
        return uid

    # ========================================
    # Helpers
    # ========================================

    def _topic_lock(self, slug: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(slug)
            if lock is None:
                lock = self._locks[slug] = threading.Lock()
            return lock

    def _curated_industry_flag(self, slug: str) -> bool:
        with self.db.read_session() as session:
            flag = session.execute(
                select(QuizTopic.industry_specific).where(QuizTopic.slug == slug)
            ).scalar_one_or_none()
        return bool(flag)
