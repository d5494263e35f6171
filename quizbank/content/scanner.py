"""
Local topic scanner.

Enumerates quiz documents in a locally cloned corpus laid out as
``<root>/<topic>/<topic>-quiz.md``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .topic_names import slug_to_name


@dataclass(frozen=True)
class LocalTopic:
    """A quiz document found on disk."""

    slug: str
    name: str
    file: Path


def scan_local_repo(root: Path | str | None) -> list[LocalTopic]:
    """
    Find every topic document under ``root``.

    Returns:
        LocalTopic per matching directory, sorted by slug. Empty when the
        root is missing.
    """
    if not root:
        return []

    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Quiz repo root not found: {root}")
        return []

    topics = []
    for entry in root.iterdir():
        if not entry.is_dir() or entry.name.startswith("."):
            continue
        md_file = entry / f"{entry.name}-quiz.md"
        if md_file.is_file():
            topics.append(
                LocalTopic(
                    slug=entry.name.lower(),
                    name=slug_to_name(entry.name),
                    file=md_file,
                )
            )

    topics.sort(key=lambda t: t.slug)
    logger.debug(f"Found {len(topics)} local topics under {root}")
    return topics
