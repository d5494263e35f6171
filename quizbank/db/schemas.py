"""
Pydantic read models returned by the repository and maintenance services.

ORM rows never leave a session; callers receive these instead.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TopicSummary(BaseModel):
    """Topic row joined with its curated category."""

    model_config = ConfigDict(from_attributes=True)

    slug: str
    name: str | None = None
    description: str | None = None
    industry_specific: bool = False


class QuizTopicRecord(BaseModel):
    """A curated quiz_topic row."""

    model_config = ConfigDict(from_attributes=True)

    slug: str
    name: str | None = None
    industry_specific: bool = False


class QuizRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    topic_id: int
    source_id: int | None = None
    import_batch_id: int | None = None
    created_at: datetime | None = None


class QuizMeta(QuizRecord):
    """Quiz with its active question count."""

    question_count: int = 0


class ChoiceRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    label_md: str
    is_correct: bool
    position: int


class QuestionRecord(BaseModel):
    """A question with its ordered choices attached."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    external_uid: str
    number_in_source: int
    question_type: str
    prompt_md: str
    code_md: str | None = None
    code_language: str | None = None
    explanation_md: str | None = None
    difficulty: float | None = None
    reference_url: str | None = None
    position: int
    choices: list[ChoiceRecord] = Field(default_factory=list)


class RandomDraw(BaseModel):
    """
    Randomized questions for a topic.

    ``status`` separates "topic has no quiz yet" (no_quiz) from
    "quiz exists but has zero active questions" (no_questions).
    """

    topic_slug: str
    quiz: QuizRecord | None = None
    questions: list[QuestionRecord] = Field(default_factory=list)

    @property
    def status(self) -> Literal["no_quiz", "no_questions", "ok"]:
        if self.quiz is None:
            return "no_quiz"
        if not self.questions:
            return "no_questions"
        return "ok"


# ========================================
# INTEGRITY
# ========================================


class IntegrityIssue(BaseModel):
    """A detected corruption in quiz_topic; reported, never raised."""

    type: Literal["uppercase_slug", "uppercase_name"]
    slug: str
    name: str | None = None
    message: str


class IntegrityReport(BaseModel):
    valid: bool
    issues: list[IntegrityIssue] = Field(default_factory=list)
    topic_count: int = 0


class IntegrityRepair(BaseModel):
    """One applied repair."""

    action: Literal["updated", "deleted_duplicate"]
    old_slug: str
    old_name: str | None = None
    new_slug: str | None = None
    new_name: str | None = None
    reason: str | None = None


class IntegrityFixResult(BaseModel):
    fixed_count: int = 0
    details: list[IntegrityRepair] = Field(default_factory=list)
