"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Integration tests run against a throwaway SQLite database per test.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings, get_settings  # noqa: E402
from quizbank.content.importer import QuizImporter  # noqa: E402
from quizbank.db.database import Database  # noqa: E402
from quizbank.db.repository import ContentRepository  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (temporary SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


BASH_DOC = """## Bash

#### Q1. What does `pwd` print?

- [x] The current working directory
- [ ] The password file
- [ ] The previous directory

#### Q2. Which commands list files?

- [x] `ls`
- [x] `find . -maxdepth 1`
- [ ] `cd`

[reference](https://www.gnu.org/software/bash/manual/)
Both `ls` and `find` print directory entries.

#### Q3. What is the output of this script?

```bash
echo $((1 + 2))
```

- [ ] 1 + 2
- [x] 3
"""


def make_doc(question_count: int, topic: str = "Bash") -> str:
    """Document with ``question_count`` single-answer questions."""
    blocks = [f"## {topic}", ""]
    for n in range(1, question_count + 1):
        blocks += [f"#### Q{n}. Question {n}?", "", "- [x] Right", "- [ ] Wrong", ""]
    return "\n".join(blocks)


@pytest.fixture
def bash_doc():
    return BASH_DOC


@pytest.fixture
def make_quiz_doc():
    return make_doc


@pytest.fixture
def settings(tmp_path):
    """Settings pointed at a temporary database and corpus root."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'quizdb.sqlite'}",
        quiz_repo_root=str(tmp_path / "quizzes"),
        quiz_commit="abc123",
        log_file=None,
    )


@pytest.fixture
def db(settings):
    """Content store with tables created."""
    database = Database(settings.database_url)
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def importer(db, settings):
    return QuizImporter(db, settings=settings)


@pytest.fixture
def repo(db, settings):
    return ContentRepository(db, settings=settings)


@pytest.fixture
def quiz_corpus(tmp_path):
    """Local corpus laid out as <root>/<topic>/<topic>-quiz.md."""
    root = tmp_path / "quizzes"
    for slug, topic in (("bash", "Bash"), ("adobe-acrobat", "Adobe Acrobat"), ("git", "Git")):
        (root / slug).mkdir(parents=True)
        (root / slug / f"{slug}-quiz.md").write_text(make_doc(3, topic), encoding="utf-8")
    return root


@pytest.fixture
def env_database(tmp_path, monkeypatch):
    """Point the cached application settings at a temporary database."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.sqlite'}")
    monkeypatch.setenv("QUIZ_REPO_ROOT", str(tmp_path / "quizzes"))
    monkeypatch.setenv("QUIZ_COMMIT", "abc123")
    monkeypatch.delenv("LOG_FILE", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()
