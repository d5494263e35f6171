# SQLAlchemy models
from .base import Base
from .content import (
    Choice,
    ImportBatch,
    Question,
    Quiz,
    QuizTopic,
    Source,
    Topic,
)

__all__ = [
    # Base
    "Base",
    # Provenance
    "Source",
    "ImportBatch",
    # Topics
    "Topic",
    "QuizTopic",
    # Quiz content
    "Quiz",
    "Question",
    "Choice",
]
