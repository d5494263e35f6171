"""
Topic display-name resolution.

A topic's display name can come from three places: the name already stored
in the database, the ``## Title`` heading of the quiz document, or a name
supplied by the caller. Any of them may be missing or corrupted (an old bug
stored uppercased slugs such as ``ADOBE-ACROBAT`` as names), so every
candidate is validated and the slug itself is the final fallback.
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from quizbank.exceptions import NameResolutionError

_SEPARATORS = re.compile(r"[-_\s]")
_TOPIC_HEADING = re.compile(r"^##\s+(.+)$", re.MULTILINE)


def slug_to_name(slug: str) -> str:
    """Convert a slug like ``adobe-acrobat`` to ``Adobe Acrobat``."""
    if not slug:
        return slug
    spaced = re.sub(r"[-_]", " ", slug)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def extract_topic_name(markdown: str | None) -> str | None:
    """Return the first ``## Title`` heading of a document, if any."""
    if not markdown:
        return None
    match = _TOPIC_HEADING.search(markdown)
    return match.group(1).strip() if match else None


def extract_topic_name_from_file(path: Path | str | None) -> str | None:
    """Read a document and extract its topic heading; None if unreadable."""
    if not path:
        return None
    path = Path(path)
    if not path.is_file():
        return None
    try:
        return extract_topic_name(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read topic name from {path}: {e}")
        return None


def is_valid_topic_name(name: str | None, slug: str | None) -> bool:
    """
    Check that a name is not a degenerate transform of the slug.

    Rejected:
    - the uppercased slug (``ADOBE-ACROBAT``)
    - the slug itself, case-insensitively, when the slug is longer than 3 chars
    - an all-caps name equal to the slug once separators are stripped (``ADOBE ACROBAT``)

    Slugs of 3 chars or fewer may reuse the slug in another case (``Git`` for ``git``).
    """
    if not name or not slug:
        return False

    if name == slug.upper():
        return False

    if name.lower() == slug.lower() and len(slug) > 3:
        return False

    name_normalized = _SEPARATORS.sub("", name.lower())
    slug_normalized = _SEPARATORS.sub("", slug.lower())
    if name_normalized == slug_normalized and name == name.upper():
        return False

    return True


def _usable(name: str | None) -> str | None:
    """Treat blanks and the literal string 'null' as missing."""
    if name is None:
        return None
    name = name.strip()
    if not name or name.lower() == "null":
        return None
    return name


class TopicNameResolver:
    """
    Pick the best display name for a topic slug.

    Two priority orders exist because the call sites trust sources differently:

    - ``resolve`` (display time): stored -> extracted -> provided -> slug
    - ``resolve_for_import``: extracted -> stored -> provided -> slug

    Both always return a non-empty, valid name.
    """

    def resolve(
        self,
        slug: str | None,
        stored: str | None = None,
        extracted: str | None = None,
        provided: str | None = None,
    ) -> str:
        return self._first_valid(slug, (stored, extracted, provided))

    def resolve_for_import(
        self,
        slug: str | None,
        extracted: str | None = None,
        stored: str | None = None,
        provided: str | None = None,
    ) -> str:
        return self._first_valid(slug, (extracted, stored, provided))

    def _first_valid(self, slug: str | None, candidates: tuple[str | None, ...]) -> str:
        if not slug:
            raise NameResolutionError("Topic slug is required")

        for candidate in candidates:
            name = _usable(candidate)
            if name and is_valid_topic_name(name, slug):
                return name

        fallback = slug_to_name(slug.lower())
        logger.debug(f"No valid name candidate for '{slug}', using '{fallback}'")
        return fallback


def resolve_topic_name(
    slug: str | None,
    stored: str | None = None,
    markdown: str | None = None,
    provided: str | None = None,
) -> str:
    """Display-time resolution with the name extracted from ``markdown``."""
    return TopicNameResolver().resolve(
        slug,
        stored=stored,
        extracted=extract_topic_name(markdown),
        provided=provided,
    )
