"""Tests for ReclassificationPass."""

from datetime import timedelta

from tests._support.fakes import FakeClassifier

from chronicle.lifecycle import ReclassificationPass
from chronicle.llm import Verdict

IDENTITY = "chronicle-day-organizer"


def make_pass(conn, classifier, **kwargs):
    return ReclassificationPass(conn, classifier, identity=IDENTITY, **kwargs)


class TestReclassificationPass:
    """One classifier request per unvalidated item."""

    def test_recategorized(self, conn, knowledge, now):
        item = knowledge.create(
            "/src/app", "Webhook routes", category="workflow", now=now - timedelta(hours=1)
        )
        classifier = FakeClassifier(
            {"Webhook routes": Verdict(needs_change=True, category="api", subcategory="rest")}
        )

        result = make_pass(conn, classifier).run(now)

        assert result.applied == 1
        assert result.counters["recategorized"] == 1
        stored = knowledge.get(item.id)
        assert stored.category == "api"
        assert stored.subcategory == "rest"
        assert stored.cataloger == IDENTITY

    def test_confirmed_item_is_stamped(self, conn, knowledge, now):
        item = knowledge.create("/src/app", "Index on users", category="database", now=now - timedelta(hours=1))

        result = make_pass(conn, FakeClassifier()).run(now)

        assert result.skipped == 1
        assert result.counters["confirmed"] == 1
        stored = knowledge.get(item.id)
        assert stored.category == "database"
        assert stored.cataloger == IDENTITY

    def test_classifier_failure_leaves_item_unchanged(self, conn, knowledge, now):
        item = knowledge.create("/src/app", "Flaky", category="workflow", now=now - timedelta(hours=1))
        classifier = FakeClassifier(fail_titles={"Flaky"})

        result = make_pass(conn, classifier).run(now)

        assert result.retry == 1
        assert result.counters["classifier_errors"] == 1
        stored = knowledge.get(item.id)
        assert stored.category == "workflow"
        assert stored.cataloger is None
        assert stored.updated_at == item.updated_at

        # selected again next time
        classifier.fail_titles.clear()
        again = make_pass(conn, classifier).run(now + timedelta(minutes=30))
        assert again.skipped == 1
        assert knowledge.get(item.id).cataloger == IDENTITY

    def test_stamped_item_not_asked_again(self, conn, knowledge, now):
        knowledge.create("/src/app", "Done", category="api", cataloger=IDENTITY, now=now - timedelta(hours=1))
        classifier = FakeClassifier()

        result = make_pass(conn, classifier).run(now)

        assert result.items == []
        assert classifier.requests == []

    def test_other_cataloger_is_revalidated(self, conn, knowledge, now):
        knowledge.create("/src/app", "Imported", category="api", cataloger="importer", now=now - timedelta(hours=1))
        classifier = FakeClassifier()
        make_pass(conn, classifier).run(now)
        assert [r.title for r in classifier.requests] == ["Imported"]

    def test_unknown_category_not_written(self, conn, knowledge, now):
        item = knowledge.create("/src/app", "Odd", category="workflow", now=now - timedelta(hours=1))
        classifier = FakeClassifier({"Odd": Verdict(needs_change=True, category="astrology")})

        result = make_pass(conn, classifier).run(now)

        assert result.skipped == 1
        stored = knowledge.get(item.id)
        assert stored.category == "workflow"
        assert stored.cataloger == IDENTITY

    def test_lookback_and_batch_size(self, conn, knowledge, now):
        knowledge.create("/src/app", "Too old", now=now - timedelta(hours=30))
        for i in range(3):
            knowledge.create("/src/app", f"Recent {i}", now=now - timedelta(hours=3 - i))
        classifier = FakeClassifier()

        make_pass(conn, classifier, batch_size=2).run(now)

        assert [r.title for r in classifier.requests] == ["Recent 0", "Recent 1"]

    def test_request_preview(self, conn, knowledge, now):
        knowledge.create(
            "/src/app",
            "Preview",
            summary=None,
            content="x" * 400,
            category="ui",
            now=now - timedelta(hours=1),
        )
        classifier = FakeClassifier()
        make_pass(conn, classifier, preview_chars=100).run(now)
        [request] = classifier.requests
        assert request.summary_preview == "x" * 100
        assert request.category == "ui"
        assert "api" in request.vocabulary
