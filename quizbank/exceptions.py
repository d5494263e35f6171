"""
Error taxonomy for the quiz import pipeline.

Integrity problems are not exceptions; see ``quizbank.db.schemas.IntegrityIssue``.
"""
from __future__ import annotations


class QuizbankError(Exception):
    """Base class for all quizbank errors."""


class NameResolutionError(QuizbankError, ValueError):
    """A topic slug was required but missing."""


class QuizImportError(QuizbankError):
    """
    An import run failed and was rolled back.

    Attributes:
        slug: Topic slug being imported
        stage: Pipeline stage that failed ("parse" or "persist")
        question_count: Number of questions parsed before the failure
    """

    stage = "import"

    def __init__(self, message: str, slug: str | None = None, question_count: int = 0) -> None:
        super().__init__(message)
        self.slug = slug
        self.question_count = question_count


class ParseError(QuizImportError):
    """The document yielded no question blocks."""

    stage = "parse"


class TransactionError(QuizImportError):
    """A write in the persistence phase failed; the whole run was rolled back."""

    stage = "persist"
