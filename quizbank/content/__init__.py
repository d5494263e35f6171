"""
Content: quiz document parsing and import.

Core modules:
- parser: Quiz markdown to question records
- topic_names: Topic display-name validation and resolution
- scanner: Local corpus discovery
- importer: Transactional, idempotent import into the content store
- catalog: Curated topic category administration
"""

from .catalog import CategoryUpdateResult, TopicCatalog
from .importer import ImportOutcome, QuizImporter, ReloadSummary, external_uid
from .parser import MarkdownParser, ParsedChoice, ParsedDocument, ParsedQuestion, parse_markdown
from .scanner import LocalTopic, scan_local_repo
from .topic_names import (
    TopicNameResolver,
    extract_topic_name,
    extract_topic_name_from_file,
    is_valid_topic_name,
    resolve_topic_name,
    slug_to_name,
)

__all__ = [
    # Parsing
    "MarkdownParser",
    "ParsedDocument",
    "ParsedQuestion",
    "ParsedChoice",
    "parse_markdown",
    # Naming
    "TopicNameResolver",
    "is_valid_topic_name",
    "resolve_topic_name",
    "slug_to_name",
    "extract_topic_name",
    "extract_topic_name_from_file",
    # Import
    "QuizImporter",
    "ImportOutcome",
    "ReloadSummary",
    "external_uid",
    "LocalTopic",
    "scan_local_repo",
    # Administration
    "TopicCatalog",
    "CategoryUpdateResult",
]
