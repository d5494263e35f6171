"""
Read-side queries over the quiz content store.

All lookups tolerate partial and legacy data: missing categories default to
technical, absent quizzes come back as None, and a quiz slug that storage
suffixed on collision is still found by prefix.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from config import Settings, get_settings
from quizbank.db.database import Database
from quizbank.db.models import Choice, Question, Quiz, QuizTopic, Topic
from quizbank.db.schemas import (
    ChoiceRecord,
    QuestionRecord,
    QuizMeta,
    QuizRecord,
    QuizTopicRecord,
    RandomDraw,
    TopicSummary,
)


def _present(name: str | None) -> str | None:
    """Blank and the literal 'null' count as missing."""
    if name is None:
        return None
    name = str(name).strip()
    if not name or name.lower() == "null":
        return None
    return name


class ContentRepository:
    """Queries used by the quiz front end."""

    def __init__(self, db: Database, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    # ========================================
    # Topics
    # ========================================

    def list_topics(self, industry_specific: bool | None = None) -> list[TopicSummary]:
        """
        List topics with their category, optionally filtered.

        Args:
            industry_specific: True/False to filter by category, None for all
        """
        category = func.coalesce(QuizTopic.industry_specific, False)
        query = (
            select(Topic.slug, Topic.name, Topic.description, category.label("industry_specific"))
            .outerjoin(QuizTopic, QuizTopic.slug == Topic.slug)
            .where(Topic.slug.is_not(None))
            .order_by(Topic.name.asc())
        )
        if industry_specific is not None:
            query = query.where(category == industry_specific)

        with self.db.read_session() as session:
            rows = session.execute(query).all()

        return [
            TopicSummary(
                slug=row.slug,
                name=row.name,
                description=row.description,
                industry_specific=bool(row.industry_specific),
            )
            for row in rows
        ]

    def list_topics_by_category(self, industry_specific: bool = False) -> list[TopicSummary]:
        """Topics in one category, named by curated name, then topic name, then slug."""
        topics = self.list_topics(industry_specific)
        curated = {t.slug: t.name for t in self.list_quiz_topics()}

        for topic in topics:
            topic.name = _present(curated.get(topic.slug)) or _present(topic.name) or topic.slug

        return sorted(topics, key=lambda t: t.name)

    def get_topic_slugs_by_category(self, industry_specific: bool = False) -> list[str]:
        return [t.slug for t in self.list_topics(industry_specific) if t.slug]

    def list_quiz_topics(self) -> list[QuizTopicRecord]:
        """All curated quiz_topic rows."""
        with self.db.read_session() as session:
            rows = session.execute(select(QuizTopic).order_by(QuizTopic.name.asc())).scalars().all()
            return [QuizTopicRecord.model_validate(row) for row in rows]

    def get_topic_category(self, slug: str) -> bool:
        """Industry-specific flag of a slug; technical (False) when uncategorized."""
        with self.db.read_session() as session:
            flag = session.execute(
                select(QuizTopic.industry_specific).where(QuizTopic.slug == slug)
            ).scalar_one_or_none()
        return bool(flag)

    def get_topic_info(self, slug: str) -> QuizTopicRecord:
        """Curated info for a slug, falling back to the topic row, then to defaults."""
        with self.db.read_session() as session:
            curated = session.execute(
                select(QuizTopic).where(QuizTopic.slug == slug)
            ).scalar_one_or_none()
            if curated:
                return QuizTopicRecord(
                    slug=curated.slug,
                    name=_present(curated.name) or slug,
                    industry_specific=curated.industry_specific,
                )

            topic = session.execute(select(Topic).where(Topic.slug == slug)).scalar_one_or_none()
            if topic:
                return QuizTopicRecord(
                    slug=topic.slug,
                    name=_present(topic.name) or slug,
                    industry_specific=topic.industry_specific,
                )

        return QuizTopicRecord(slug=slug, name=slug, industry_specific=False)

    # ========================================
    # Quizzes
    # ========================================

    def get_latest_quiz(self, topic_slug: str) -> QuizRecord | None:
        """
        Most recent quiz for a topic.

        Falls back to an exact quiz-slug match for legacy quizzes whose topic
        row is missing. No prefix matching: ``java`` must not find ``javascript``.
        """
        with self.db.read_session() as session:
            quiz = session.execute(
                select(Quiz)
                .join(Topic, Topic.id == Quiz.topic_id)
                .where(Topic.slug == topic_slug.lower())
                .order_by(Quiz.created_at.desc(), Quiz.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            if quiz is None:
                quiz = session.execute(
                    select(Quiz)
                    .where(Quiz.slug == topic_slug)
                    .order_by(Quiz.created_at.desc(), Quiz.id.desc())
                    .limit(1)
                ).scalar_one_or_none()

            return QuizRecord.model_validate(quiz) if quiz else None

    def get_quiz_by_slug(self, quiz_slug: str) -> QuizRecord | None:
        """Exact slug match first, then the newest quiz whose slug starts with it."""
        with self.db.read_session() as session:
            quiz = self._find_quiz(session, quiz_slug)
            return QuizRecord.model_validate(quiz) if quiz else None

    def get_quiz_meta_with_counts(self, quiz_slug: str) -> QuizMeta | None:
        with self.db.read_session() as session:
            quiz = self._find_quiz(session, quiz_slug)
            if quiz is None:
                return None
            count = self._count_active(session, quiz.id)
            return QuizMeta.model_validate(quiz).model_copy(update={"question_count": count})

    def count_questions(self, quiz_id: int) -> int:
        """Number of active questions in a quiz."""
        with self.db.read_session() as session:
            return self._count_active(session, quiz_id)

    # ========================================
    # Questions
    # ========================================

    def get_questions(
        self, quiz_id: int, offset: int = 0, limit: int | None = None
    ) -> list[QuestionRecord]:
        """
        Active questions of a quiz in position order, with choices.

        ``limit`` is clamped to [1, questions_page_max]; ``offset`` to >= 0.
        """
        if limit is None:
            limit = self.settings.questions_page_size
        limit = max(1, min(self.settings.questions_page_max, int(limit)))
        offset = max(0, int(offset))

        with self.db.read_session() as session:
            questions = session.execute(
                select(Question)
                .where(Question.quiz_id == quiz_id, Question.active.is_(True))
                .order_by(Question.position.asc(), Question.id.asc())
                .offset(offset)
                .limit(limit)
            ).scalars().all()
            return self._with_choices(session, questions)

    def get_random_questions(
        self,
        quiz_id: int,
        count: int | None = None,
        exclude_ids: Iterable[int] | None = None,
    ) -> list[QuestionRecord]:
        """
        Up to ``count`` random active questions, avoiding ``exclude_ids`` where possible.

        When the pool left after exclusion is too small, the shortfall is
        backfilled from the excluded questions so the caller still receives
        min(count, active questions) without duplicates.
        """
        if count is None:
            count = self.settings.random_question_count
        if count <= 0:
            return []
        excluded = {int(i) for i in exclude_ids or ()}

        active = and_(Question.quiz_id == quiz_id, Question.active.is_(True))

        with self.db.read_session() as session:
            query = select(Question).where(active)
            if excluded:
                query = query.where(Question.id.not_in(excluded))
            picked = list(
                session.execute(query.order_by(func.random()).limit(count)).scalars().all()
            )

            if len(picked) < count:
                picked_ids = [q.id for q in picked]
                fill_query = select(Question).where(active)
                if picked_ids:
                    fill_query = fill_query.where(Question.id.not_in(picked_ids))
                fillers = session.execute(
                    fill_query.order_by(func.random()).limit(count - len(picked))
                ).scalars().all()
                if fillers:
                    logger.warning(
                        f"Quiz {quiz_id}: backfilled {len(fillers)} excluded questions"
                    )
                picked.extend(fillers)

            return self._with_choices(session, picked)

    def draw_random_for_topic(
        self,
        topic_slug: str,
        count: int | None = None,
        exclude_ids: Iterable[int] | None = None,
    ) -> RandomDraw:
        """Random questions from the latest quiz of a topic."""
        quiz = self.get_latest_quiz(topic_slug)
        if quiz is None:
            return RandomDraw(topic_slug=topic_slug)

        questions = self.get_random_questions(quiz.id, count, exclude_ids)
        return RandomDraw(topic_slug=topic_slug, quiz=quiz, questions=questions)

    # ========================================
    # Helpers
    # ========================================

    def _find_quiz(self, session: Session, quiz_slug: str) -> Quiz | None:
        quiz = session.execute(select(Quiz).where(Quiz.slug == quiz_slug)).scalar_one_or_none()
        if quiz:
            return quiz

        quiz = session.execute(
            select(Quiz)
            .where(Quiz.slug.startswith(quiz_slug, autoescape=True))
            .order_by(Quiz.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if quiz:
            logger.warning(f"Quiz '{quiz_slug}' matched by prefix as '{quiz.slug}'")
        return quiz

    @staticmethod
    def _count_active(session: Session, quiz_id: int) -> int:
        return session.execute(
            select(func.count(Question.id)).where(
                Question.quiz_id == quiz_id, Question.active.is_(True)
            )
        ).scalar_one()

    @staticmethod
    def _with_choices(session: Session, questions: Sequence[Question]) -> list[QuestionRecord]:
        """Attach ordered choices with one query for the whole page."""
        if not questions:
            return []

        ids = [q.id for q in questions]
        choices = session.execute(
            select(Choice)
            .where(Choice.question_id.in_(ids))
            .order_by(Choice.question_id.asc(), Choice.position.asc())
        ).scalars().all()

        by_question: dict[int, list[ChoiceRecord]] = {qid: [] for qid in ids}
        for choice in choices:
            by_question[choice.question_id].append(ChoiceRecord.model_validate(choice))

        return [
            QuestionRecord(
                id=q.id,
                external_uid=q.external_uid,
                number_in_source=q.number_in_source,
                question_type=q.question_type,
                prompt_md=q.prompt_md,
                code_md=q.code_md,
                code_language=q.code_language,
                explanation_md=q.explanation_md,
                difficulty=q.difficulty,
                reference_url=q.reference_url,
                position=q.position,
                choices=by_question[q.id],
            )
            for q in questions
        ]
