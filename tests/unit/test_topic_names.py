"""
Unit tests for topic display-name resolution.
"""

import pytest

from quizbank.content.topic_names import (
    TopicNameResolver,
    extract_topic_name,
    extract_topic_name_from_file,
    is_valid_topic_name,
    resolve_topic_name,
    slug_to_name,
)
from quizbank.exceptions import NameResolutionError


class TestSlugToName:
    @pytest.mark.parametrize(
        "slug,expected",
        [
            ("adobe-acrobat", "Adobe Acrobat"),
            ("bash", "Bash"),
            ("c_sharp", "C Sharp"),
            ("microsoft-power-bi", "Microsoft Power Bi"),
        ],
    )
    def test_title_cases_words(self, slug, expected):
        assert slug_to_name(slug) == expected

    def test_empty(self):
        assert slug_to_name("") == ""


class TestIsValidTopicName:
    """Tests for degenerate-name detection."""

    def test_uppercased_slug_rejected(self):
        assert not is_valid_topic_name("ADOBE-ACROBAT", "adobe-acrobat")

    def test_slug_itself_rejected_when_long(self):
        assert not is_valid_topic_name("adobe-acrobat", "adobe-acrobat")
        assert not is_valid_topic_name("Bash", "bash")

    def test_all_caps_without_separators_rejected(self):
        assert not is_valid_topic_name("ADOBE ACROBAT", "adobe-acrobat")
        assert not is_valid_topic_name("ADOBEACROBAT", "adobe-acrobat")

    def test_short_slug_may_reuse_slug(self):
        """Slugs of three characters or fewer may use the slug in another case."""
        assert is_valid_topic_name("Git", "git")
        assert is_valid_topic_name("git", "git")
        assert not is_valid_topic_name("GIT", "git")

    def test_real_names_accepted(self):
        assert is_valid_topic_name("Adobe Acrobat", "adobe-acrobat")
        assert is_valid_topic_name("Bash (Unix shell)", "bash")
        assert is_valid_topic_name("AWS", "amazon-web-services")

    @pytest.mark.parametrize("name,slug", [(None, "bash"), ("", "bash"), ("Bash", None)])
    def test_missing_inputs_invalid(self, name, slug):
        assert not is_valid_topic_name(name, slug)


class TestTopicNameResolver:
    """Tests for the two priority orders."""

    @pytest.fixture
    def resolver(self):
        return TopicNameResolver()

    def test_display_prefers_stored(self, resolver):
        name = resolver.resolve("bash", stored="Bash Shell", extracted="Bash (Unix shell)")
        assert name == "Bash Shell"

    def test_import_prefers_extracted(self, resolver):
        name = resolver.resolve_for_import("bash", extracted="Bash (Unix shell)", stored="Bash Shell")
        assert name == "Bash (Unix shell)"

    def test_corrupted_stored_name_skipped(self, resolver):
        name = resolver.resolve("adobe-acrobat", stored="ADOBE-ACROBAT", extracted="Adobe Acrobat")
        assert name == "Adobe Acrobat"

    def test_null_and_blank_treated_as_missing(self, resolver):
        name = resolver.resolve("adobe-acrobat", stored="null", extracted="  ", provided="Acrobat Pro")
        assert name == "Acrobat Pro"

    def test_falls_back_to_slug_conversion(self, resolver):
        name = resolver.resolve_for_import(
            "adobe-acrobat", extracted="ADOBE ACROBAT", stored="ADOBE-ACROBAT", provided="adobe-acrobat"
        )
        assert name == "Adobe Acrobat"

    def test_fallback_lowercases_slug(self, resolver):
        assert resolver.resolve("ADOBE-ACROBAT") == "Adobe Acrobat"

    def test_missing_slug_raises(self, resolver):
        with pytest.raises(NameResolutionError):
            resolver.resolve(None, stored="Bash")
        with pytest.raises(ValueError):
            resolver.resolve_for_import("", extracted="Bash")


class TestExtraction:
    def test_extract_first_heading(self):
        assert extract_topic_name("intro\n## Adobe Acrobat\n## Other\n") == "Adobe Acrobat"

    def test_extract_none(self):
        assert extract_topic_name(None) is None
        assert extract_topic_name("### Q1. Not a topic\n") is None

    def test_extract_from_file(self, tmp_path):
        path = tmp_path / "git-quiz.md"
        path.write_text("## Git\n\n#### Q1. X\n- [x] A\n", encoding="utf-8")

        assert extract_topic_name_from_file(path) == "Git"

    def test_extract_from_missing_file(self, tmp_path):
        assert extract_topic_name_from_file(tmp_path / "missing.md") is None
        assert extract_topic_name_from_file(None) is None

    def test_extract_from_undecodable_file(self, tmp_path):
        path = tmp_path / "bad-quiz.md"
        path.write_bytes(b"## \xff\xfe broken\n")

        assert extract_topic_name_from_file(path) is None


def test_resolve_topic_name_reads_markdown():
    name = resolve_topic_name("adobe-acrobat", stored="ADOBE-ACROBAT", markdown="## Adobe Acrobat\n")
    assert name == "Adobe Acrobat"
