"""
Quiz content models.

Implements the normalized content store produced by the import pipeline:
- Source / ImportBatch: provenance of every import run
- Topic: subject area, keyed by lowercase slug
- QuizTopic: curated category and display-name override for a slug
- Quiz / Question / Choice: the imported question set

Question.external_uid ("{slug}#Q{n}@{commit}") is the idempotency anchor for
re-imports; choices are only ever replaced by delete-and-reinsert.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

# ========================================
# PROVENANCE
# ========================================


class Source(Base):
    """An attributed content provider. Created once per name, never mutated."""

    __tablename__ = "source"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    repo_url: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(Text)
    license_spdx: Mapped[str | None] = mapped_column(Text)
    attribution: Mapped[str | None] = mapped_column(Text)
    commit_sha: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    batches: Mapped[list[ImportBatch]] = relationship(back_populates="source")


class ImportBatch(Base):
    """One execution of the pipeline against one document."""

    __tablename__ = "import_batch"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("source.id"), nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(default=func.now())
    parser_version: Mapped[str] = mapped_column(Text, nullable=False)
    raw_hash: Mapped[str] = mapped_column(Text, nullable=False)  # sha256 of the document
    notes: Mapped[str | None] = mapped_column(Text)

    source: Mapped[Source] = relationship(back_populates="batches")


# ========================================
# TOPICS
# ========================================


class Topic(Base):
    """A subject area. Slug is lowercase and stable; rows are never deleted."""

    __tablename__ = "topic"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str | None] = mapped_column(Text, unique=True)
    name: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    industry_specific: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    quizzes: Mapped[list[Quiz]] = relationship(back_populates="topic")


class QuizTopic(Base):
    """
    Curated classification of a slug.

    Administrator-owned: re-imports only fill a missing name or raise
    industry_specific from False to True.
    """

    __tablename__ = "quiz_topic"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text)
    industry_specific: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


# ========================================
# QUIZ CONTENT
# ========================================


class Quiz(Base):
    """One generated question set for a topic, produced by one import batch."""

    __tablename__ = "quiz"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topic.id"), nullable=False)
    source_id: Mapped[int | None] = mapped_column(ForeignKey("source.id"))
    import_batch_id: Mapped[int | None] = mapped_column(ForeignKey("import_batch.id"))
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    topic: Mapped[Topic] = relationship(back_populates="quizzes")
    questions: Mapped[list[Question]] = relationship(
        back_populates="quiz", order_by="Question.position"
    )


class Question(Base):
    """A parsed question; superseded in place when its external UID is re-imported."""

    __tablename__ = "question"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quiz.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_uid: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    number_in_source: Mapped[int] = mapped_column(Integer, nullable=False)
    question_type: Mapped[str] = mapped_column(Text, nullable=False, default="single")  # single | multi
    prompt_md: Mapped[str] = mapped_column(Text, nullable=False)
    code_md: Mapped[str | None] = mapped_column(Text)
    code_language: Mapped[str | None] = mapped_column(Text)
    explanation_md: Mapped[str | None] = mapped_column(Text)
    difficulty: Mapped[float | None] = mapped_column(Numeric(3, 2, asdecimal=False))
    reference_url: Mapped[str | None] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    quiz: Mapped[Quiz] = relationship(back_populates="questions")
    choices: Mapped[list[Choice]] = relationship(
        back_populates="question",
        order_by="Choice.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Choice(Base):
    """One answer option of a question."""

    __tablename__ = "choice"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        ForeignKey("question.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label_md: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    question: Mapped[Question] = relationship(back_populates="choices")
