from datetime import datetime, timedelta, timezone

import pytest

from busbuzz.core.errors import NotFound
from busbuzz.db.session import Database
from busbuzz.schemas.report import ConversationEntry, ReportDoc
from busbuzz.services.report_store import ReportStore

T0 = datetime(2025, 1, 6, 8, 30, tzinfo=timezone.utc)


def feedback_doc(submitted_on=T0, **overrides):
    values = dict(
        kind="Feedback",
        author_user_id=1,
        author_name="Asha",
        route="5A",
        bus_no="KA-01-F-1234",
        issue="Punctuality",
        attachments=[{"url": "/a/1", "name": "photo.jpg"}],
        status="Pending",
        submitted_on=submitted_on,
    )
    values.update(overrides)
    return ReportDoc.model_validate(values)


def test_insert_assigns_id_and_round_trips_nested_parts(session):
    store = ReportStore(session)
    doc = store.insert(feedback_doc(details={"punctuality": 2, "driver_behavior": 5}))

    assert doc.id is not None
    loaded = store.get(doc.id)
    assert loaded.submitted_on == T0
    assert loaded.attachments[0].name == "photo.jpg"
    assert loaded.details.driver_behavior == 5
    assert loaded.conversation == []


def test_get_missing_returns_none(session):
    assert ReportStore(session).get(12345) is None


def test_ties_on_submitted_on_are_broken_by_id(session):
    store = ReportStore(session)
    first = store.insert(feedback_doc())
    second = store.insert(feedback_doc())
    later = store.insert(feedback_doc(submitted_on=T0 + timedelta(minutes=5)))

    newest_first = [d.id for d in store.query()]
    assert newest_first == [later.id, first.id, second.id]

    oldest_first = [d.id for d in store.query(descending=False)]
    assert oldest_first == [first.id, second.id, later.id]


def test_update_atomic_never_rewrites_submitted_on_or_kind(session):
    store = ReportStore(session)
    doc = store.insert(feedback_doc())

    def mutate(current):
        current.submitted_on = T0 + timedelta(days=30)
        current.kind = "Found"
        current.description = "edited"
        return current

    updated = store.update_atomic(doc.id, mutate)
    assert updated.submitted_on == T0
    assert updated.kind == "Feedback"
    assert updated.description == "edited"


def test_update_atomic_missing_report(session):
    with pytest.raises(NotFound):
        ReportStore(session).update_atomic(999, lambda d: d)


def test_failed_mutator_leaves_report_untouched(session):
    store = ReportStore(session)
    doc = store.insert(feedback_doc())

    def mutate(current):
        current.status = "Closed"
        raise NotFound("gone")

    with pytest.raises(NotFound):
        store.update_atomic(doc.id, mutate)
    assert store.get(doc.id).status == "Pending"


def test_concurrent_write_is_reapplied_not_overwritten(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'race.db'}")
    database.create_all()
    first, second = database.session(), database.session()
    try:
        store = ReportStore(first)
        doc = store.insert(feedback_doc())
        calls = []

        def other_writer(current):
            current.conversation.append(ConversationEntry(author_name="Bala", message="me too", timestamp=T0))
            return current

        def mutate(current):
            calls.append(len(current.conversation))
            if len(calls) == 1:
                # another request commits between our read and our write
                ReportStore(second).update_atomic(doc.id, other_writer)
            current.conversation.append(ConversationEntry(author_name="Asha", message="any update?", timestamp=T0))
            return current

        updated = store.update_atomic(doc.id, mutate)

        assert calls == [0, 1]
        assert [e.message for e in updated.conversation] == ["me too", "any update?"]
    finally:
        first.close()
        second.close()
        database.dispose()


def test_delete_reports_whether_a_row_was_removed(session):
    store = ReportStore(session)
    doc = store.insert(feedback_doc())
    assert store.delete(doc.id) is True
    assert store.delete(doc.id) is False
    assert store.get(doc.id) is None
