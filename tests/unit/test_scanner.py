"""
Unit tests for the local corpus scanner.
"""

from quizbank.content.scanner import LocalTopic, scan_local_repo


class TestScanLocalRepo:
    def test_finds_topics_sorted_by_slug(self, quiz_corpus):
        topics = scan_local_repo(quiz_corpus)

        assert [t.slug for t in topics] == ["adobe-acrobat", "bash", "git"]
        assert topics[0] == LocalTopic(
            slug="adobe-acrobat",
            name="Adobe Acrobat",
            file=quiz_corpus / "adobe-acrobat" / "adobe-acrobat-quiz.md",
        )

    def test_skips_dirs_without_matching_file(self, quiz_corpus):
        (quiz_corpus / "empty").mkdir()
        (quiz_corpus / "misnamed").mkdir()
        (quiz_corpus / "misnamed" / "quiz.md").write_text("## X\n", encoding="utf-8")

        assert "empty" not in [t.slug for t in scan_local_repo(quiz_corpus)]
        assert "misnamed" not in [t.slug for t in scan_local_repo(quiz_corpus)]

    def test_skips_hidden_dirs_and_files(self, quiz_corpus):
        (quiz_corpus / ".git").mkdir()
        (quiz_corpus / ".git" / ".git-quiz.md").write_text("## X\n", encoding="utf-8")
        (quiz_corpus / "README.md").write_text("# Quizzes\n", encoding="utf-8")

        assert len(scan_local_repo(quiz_corpus)) == 3

    def test_missing_root(self, tmp_path):
        assert scan_local_repo(tmp_path / "nowhere") == []
        assert scan_local_repo(None) == []
