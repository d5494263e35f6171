"""
Integration tests for content retrieval queries.
"""

import pytest
from sqlalchemy import select, update

from quizbank.content.catalog import TopicCatalog
from quizbank.db.models import Question, Quiz, QuizTopic, Topic
from quizbank.db.repository import ContentRepository


@pytest.fixture
def seven(importer, make_quiz_doc):
    """A 'bash' quiz with seven active questions."""
    return importer.import_document(make_quiz_doc(7), slug="bash")


def question_ids(db, quiz_id):
    with db.read_session() as session:
        return list(
            session.execute(
                select(Question.id).where(Question.quiz_id == quiz_id).order_by(Question.position)
            ).scalars()
        )


def deactivate(db, ids):
    with db.session_scope() as session:
        session.execute(update(Question).where(Question.id.in_(ids)).values(active=False))


class TestRandomQuestions:
    """Tests for randomized draws with exclusion and backfill."""

    def test_returns_all_when_pool_smaller_than_count(self, repo, seven):
        questions = repo.get_random_questions(seven.quiz_id, 10)

        assert len(questions) == 7
        assert len({q.id for q in questions}) == 7

    def test_default_count_from_settings(self, repo, importer, make_quiz_doc):
        outcome = importer.import_document(make_quiz_doc(15), slug="git")
        assert len(repo.get_random_questions(outcome.quiz_id)) == 10

    def test_exclusion_respected_when_pool_suffices(self, repo, db, seven):
        ids = question_ids(db, seven.quiz_id)
        excluded = ids[:3]

        questions = repo.get_random_questions(seven.quiz_id, 4, exclude_ids=excluded)

        assert sorted(q.id for q in questions) == sorted(ids[3:])

    def test_backfill_from_excluded(self, repo, db, seven):
        """Excluding everything still yields min(count, active) questions."""
        ids = question_ids(db, seven.quiz_id)

        questions = repo.get_random_questions(seven.quiz_id, 10, exclude_ids=ids)

        assert sorted(q.id for q in questions) == sorted(ids)

    def test_partial_backfill_keeps_unexcluded(self, repo, db, seven):
        ids = question_ids(db, seven.quiz_id)

        questions = repo.get_random_questions(seven.quiz_id, 3, exclude_ids=ids[:5])
        picked = {q.id for q in questions}

        assert len(picked) == 3
        assert set(ids[5:]) <= picked

    def test_inactive_never_returned(self, repo, db, seven):
        ids = question_ids(db, seven.quiz_id)
        deactivate(db, ids[:2])

        questions = repo.get_random_questions(seven.quiz_id, 10, exclude_ids=ids)

        assert sorted(q.id for q in questions) == sorted(ids[2:])

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_count(self, repo, seven, count):
        assert repo.get_random_questions(seven.quiz_id, count) == []

    def test_choices_attached_in_order(self, repo, seven):
        question = repo.get_random_questions(seven.quiz_id, 1)[0]

        assert [c.label_md for c in question.choices] == ["Right", "Wrong"]
        assert [c.position for c in question.choices] == [1, 2]


class TestDrawForTopic:
    def test_no_quiz(self, repo):
        draw = repo.draw_random_for_topic("cobol")

        assert draw.status == "no_quiz"
        assert draw.questions == []

    def test_no_questions(self, repo, db, seven):
        deactivate(db, question_ids(db, seven.quiz_id))
        assert repo.draw_random_for_topic("bash").status == "no_questions"

    def test_ok(self, repo, seven):
        draw = repo.draw_random_for_topic("bash", 5)

        assert draw.status == "ok"
        assert draw.quiz.id == seven.quiz_id
        assert len(draw.questions) == 5


class TestPagination:
    """Tests for paginated question listing."""

    def test_position_order(self, repo, seven):
        questions = repo.get_questions(seven.quiz_id)

        assert [q.position for q in questions] == [1, 2, 3, 4, 5, 6, 7]
        assert questions[0].external_uid == "bash#Q1@abc123"

    def test_offset_and_limit(self, repo, seven):
        questions = repo.get_questions(seven.quiz_id, offset=2, limit=3)
        assert [q.position for q in questions] == [3, 4, 5]

    def test_limit_clamped(self, db, settings, seven):
        repo = ContentRepository(db, settings=settings.model_copy(update={"questions_page_max": 5}))

        assert len(repo.get_questions(seven.quiz_id, limit=10_000)) == 5
        assert len(repo.get_questions(seven.quiz_id, limit=0)) == 1
        assert len(repo.get_questions(seven.quiz_id, limit=-2)) == 1

    def test_negative_offset_clamped(self, repo, seven):
        assert repo.get_questions(seven.quiz_id, offset=-5, limit=2)[0].position == 1

    def test_inactive_excluded(self, repo, db, seven):
        deactivate(db, question_ids(db, seven.quiz_id)[:1])

        assert len(repo.get_questions(seven.quiz_id)) == 6
        assert repo.count_questions(seven.quiz_id) == 6


class TestQuizLookup:
    def test_latest_quiz_after_reimport(self, repo, importer, make_quiz_doc):
        importer.import_document(make_quiz_doc(2), slug="bash")
        second = importer.import_document(make_quiz_doc(2), slug="bash")

        latest = repo.get_latest_quiz("bash")

        assert latest.id == second.quiz_id
        assert latest.slug == second.quiz_slug

    def test_latest_quiz_unknown_topic(self, repo):
        assert repo.get_latest_quiz("cobol") is None

    def test_latest_quiz_falls_back_to_quiz_slug(self, repo, db):
        with db.session_scope() as session:
            legacy = Topic(slug=None, name="Legacy")
            session.add(legacy)
            session.flush()
            session.add(Quiz(topic_id=legacy.id, title="Legacy Quiz", slug="legacy-quiz"))

        assert repo.get_latest_quiz("legacy-quiz").slug == "legacy-quiz"

    def test_latest_quiz_never_matches_by_prefix(self, repo, importer, make_quiz_doc):
        """A topic slug that prefixes another topic's quiz slug has no quiz of its own."""
        importer.import_document(make_quiz_doc(3, "JavaScript"), slug="javascript")

        assert repo.get_latest_quiz("java") is None
        assert repo.draw_random_for_topic("java").status == "no_quiz"
        assert repo.get_latest_quiz("javascript").slug == "javascript"

    def test_exact_slug(self, repo, seven):
        assert repo.get_quiz_by_slug("bash").id == seven.quiz_id

    def test_prefix_match_for_suffixed_slug(self, repo, db, importer, make_quiz_doc):
        importer.import_document(make_quiz_doc(1), slug="docker")
        second = importer.import_document(make_quiz_doc(1), slug="docker")
        with db.session_scope() as session:
            session.delete(session.execute(select(Quiz).where(Quiz.slug == "docker")).scalar_one())

        assert repo.get_quiz_by_slug("docker").slug == second.quiz_slug

    def test_prefix_wildcards_escaped(self, repo, seven):
        assert repo.get_quiz_by_slug("ba%") is None
        assert repo.get_quiz_by_slug("b_sh") is None

    def test_meta_with_counts(self, repo, db, seven):
        deactivate(db, question_ids(db, seven.quiz_id)[:2])

        meta = repo.get_quiz_meta_with_counts("bash")

        assert meta.question_count == 5
        assert meta.title == "Bash Quiz (abc123)"
        assert repo.get_quiz_meta_with_counts("cobol") is None


class TestTopics:
    """Tests for topic listing and category lookups."""

    @pytest.fixture
    def topics(self, importer, db, make_quiz_doc):
        importer.import_document(make_quiz_doc(1, topic="Bash (Unix shell)"), slug="bash")
        importer.import_document(make_quiz_doc(1, topic="Microsoft Excel"), slug="excel", industry_specific=True)
        with db.session_scope() as session:
            session.add(Topic(slug="cobol", name="COBOL"))

    def test_list_all(self, repo, topics):
        listed = repo.list_topics()

        assert [t.slug for t in listed] == ["bash", "cobol", "excel"]
        assert [t.industry_specific for t in listed] == [False, False, True]

    def test_filter_by_category(self, repo, topics):
        assert [t.slug for t in repo.list_topics(industry_specific=True)] == ["excel"]
        assert [t.slug for t in repo.list_topics(industry_specific=False)] == ["bash", "cobol"]
        assert repo.get_topic_slugs_by_category(True) == ["excel"]

    def test_by_category_prefers_curated_name(self, repo, db, topics):
        TopicCatalog(db).rename_topic("bash", "Bourne Again Shell")
        with db.session_scope() as session:
            session.execute(update(QuizTopic).where(QuizTopic.slug == "excel").values(name="null"))

        technical = {t.slug: t.name for t in repo.list_topics_by_category(False)}
        industry = {t.slug: t.name for t in repo.list_topics_by_category(True)}

        assert technical == {"bash": "Bourne Again Shell", "cobol": "COBOL"}
        assert industry == {"excel": "Microsoft Excel"}

    def test_topic_category(self, repo, topics):
        assert repo.get_topic_category("excel") is True
        assert repo.get_topic_category("bash") is False
        assert repo.get_topic_category("unknown") is False

    def test_topic_info_fallbacks(self, repo, topics):
        assert repo.get_topic_info("excel").name == "Microsoft Excel"
        assert repo.get_topic_info("cobol").name == "COBOL"

        unknown = repo.get_topic_info("unknown")
        assert (unknown.name, unknown.industry_specific) == ("unknown", False)

    def test_list_quiz_topics(self, repo, topics):
        assert sorted(t.slug for t in repo.list_quiz_topics()) == ["bash", "excel"]
