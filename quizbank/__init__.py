"""
quizbank: quiz markdown import pipeline and content store.

Subpackages:
- content/: Markdown parsing, topic naming, import orchestration, catalog admin
- db/: Storage handle, ORM models, read queries, integrity maintenance
- cli/: Administrative command line
"""

__version__ = "1.0.0"
