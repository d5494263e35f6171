"""
Markdown parser for community quiz documents.

Converts a quiz markdown file into an ordered list of question records.
The source dialect is loosely structured, so the parser recognizes a fixed
set of markers rather than a full markdown grammar:

- Topic:      first ``## Title`` heading
- Question:   ``### Q1. Title`` with 3-6 hashes and optional punctuation after the number
- Choice:     ``- [x] correct`` / ``- [ ] incorrect``
- Code:       first fenced code block in the question body
- Reference:  ``[reference](url)`` followed by optional explanation text
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ParsedChoice:
    """One answer option as written in the document."""

    label_md: str
    is_correct: bool
    position: int


@dataclass
class ParsedQuestion:
    """A question block extracted from the document."""

    number_in_source: int
    title: str
    prompt_md: str
    position: int
    choices: list[ParsedChoice] = field(default_factory=list)
    code_md: str | None = None
    code_language: str | None = None
    explanation_md: str | None = None
    reference_url: str | None = None
    # Left blank here; the importer infers single/multi from the answer key
    question_type: str = ""

    @property
    def correct_count(self) -> int:
        return sum(1 for c in self.choices if c.is_correct)

    @property
    def inferred_type(self) -> str:
        """Question type implied by the answer key (>1 correct => multi)."""
        return "multi" if self.correct_count > 1 else "single"


@dataclass
class ParsedDocument:
    """Result of parsing one quiz document."""

    topic: str | None
    questions: list[ParsedQuestion] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)


class MarkdownParser:
    """Parser for quiz markdown documents."""

    TOPIC_PATTERN = re.compile(r"^##\s+(.+)$", re.MULTILINE)
    QUESTION_PATTERN = re.compile(r"^#{3,6}\s+Q(\d+)[.:)]?\s+(.+)$", re.MULTILINE)
    CODE_BLOCK_PATTERN = re.compile(r"```([a-zA-Z0-9_+-]+)?\n([\s\S]*?)\n```")
    CHOICE_PATTERN = re.compile(r"^[-*+] \[( |x|X)\][ \t]+(.*)$", re.MULTILINE)
    REFERENCE_PATTERN = re.compile(r"^\[reference\]\(([^)]+)\)", re.MULTILINE | re.IGNORECASE)
    IMAGE_LINE_PATTERN = re.compile(r"^!\[[^\]]*\]\([^)]+\)\s*$")

    # Lines that end the prompt-image scan
    _CHOICE_START = re.compile(r"^[-*+] \[")
    _REFERENCE_START = re.compile(r"^\[reference\]\(", re.IGNORECASE)

    def parse(self, text: str, topic_override: str | None = None) -> ParsedDocument:
        """
        Parse raw document text.

        Args:
            text: Markdown source, any line-ending convention
            topic_override: Topic name used when the document has no ``##`` heading

        Returns:
            ParsedDocument; ``questions`` is empty when no question heading matched
        """
        text = normalize_line_endings(text)

        topic_match = self.TOPIC_PATTERN.search(text)
        topic = topic_match.group(1).strip() if topic_match else topic_override

        questions = []
        for position, (number, title, body) in enumerate(self._split_blocks(text), start=1):
            questions.append(self._parse_block(number, title, body, position))

        return ParsedDocument(topic=topic, questions=questions)

    def parse_file(self, path: Path | str, topic_override: str | None = None) -> ParsedDocument:
        """Parse a quiz document from disk."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Quiz file not found: {path}")

        return self.parse(path.read_text(encoding="utf-8"), topic_override)

    def _split_blocks(self, text: str) -> list[tuple[int, str, str]]:
        """Split the document into (number, title, body) per question heading."""
        matches = list(self.QUESTION_PATTERN.finditer(text))
        blocks = []

        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            body = text[match.end():end].strip()
            blocks.append((int(match.group(1)), match.group(2).strip(), body))

        return blocks

    def _parse_block(self, number: int, title: str, body: str, position: int) -> ParsedQuestion:
        question = ParsedQuestion(
            number_in_source=number,
            title=title,
            prompt_md=self._build_prompt(title, body),
            position=position,
        )

        code_match = self.CODE_BLOCK_PATTERN.search(body)
        if code_match:
            language = (code_match.group(1) or "").strip() or None
            question.code_language = language
            question.code_md = f"```{language or ''}\n{code_match.group(2)}\n```"

        for choice_position, choice_match in enumerate(self.CHOICE_PATTERN.finditer(body), start=1):
            question.choices.append(
                ParsedChoice(
                    label_md=choice_match.group(2).strip(),
                    is_correct=choice_match.group(1).lower() == "x",
                    position=choice_position,
                )
            )

        ref_match = self.REFERENCE_PATTERN.search(body)
        if ref_match:
            question.reference_url = ref_match.group(1).strip()
            question.explanation_md = body[ref_match.end():].strip() or None

        return question

    def _build_prompt(self, title: str, body: str) -> str:
        """
        Title plus any bare image lines that precede the answer list.

        Scanning stops at the first choice, code fence, or reference line.
        Non-image prose before that point is not part of the prompt.
        """
        images = []

        for raw_line in body.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            if self._CHOICE_START.match(line) or line.startswith("```") or self._REFERENCE_START.match(line):
                break
            if self.IMAGE_LINE_PATTERN.match(line):
                images.append(line)

        if images:
            return f"{title}\n\n" + "\n".join(images)
        return title


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and bare CR line endings to LF."""
    return re.sub(r"\r\n?", "\n", text)


def parse_markdown(text: str, topic_override: str | None = None) -> ParsedDocument:
    """Parse a quiz document with a default parser."""
    return MarkdownParser().parse(text, topic_override)
