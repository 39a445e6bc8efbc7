"""Tests for idempotent count event submission."""

import itertools
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from inventory_counting.containers import AppContainer
from inventory_counting.domain.errors import (
    InventoryValidationError,
    SessionNotFoundError,
    SessionStateConflictError,
)
from inventory_counting.services.count_events import EventSubmission
from tests.conftest import InMemoryCountEventRepository


def _start(container: AppContainer):
    return container.session_service.create_session(
        session_name="Count", host_id="host"
    )


def _totals(container: AppContainer, session_id) -> dict[str, int]:
    state = container.totals_aggregator.compute_state(session_id)
    return {row.item_key: row.qty for row in state.totals}


def test_submit_events_returns_totals(container: AppContainer) -> None:
    session = _start(container)

    result = container.count_event_log.submit_events(
        session.id,
        actor_id="alice",
        actor_name="Alice",
        events=[
            EventSubmission(event_id="e1", item_key="123", delta=2),
            EventSubmission(event_id="e2", item_key="456", delta=1),
            EventSubmission(event_id="e3", item_key="123", delta=-1),
        ],
    )

    assert result.accepted_count == 3
    assert {row.item_key: row.qty for row in result.totals} == {"123": 1, "456": 1}
    assert [p.participant_id for p in result.participants] == ["host", "alice"]


def test_resubmitting_same_event_has_no_additional_effect(
    container: AppContainer,
) -> None:
    session = _start(container)
    event = EventSubmission(event_id="e1", item_key="123", delta=1)

    for _ in range(4):
        result = container.count_event_log.submit_events(
            session.id, actor_id="alice", actor_name=None, events=[event]
        )

    assert result.accepted_count == 1
    assert _totals(container, session.id) == {"123": 1}
    state = container.totals_aggregator.compute_state(session.id)
    assert state.pending_event_count == 1


def test_duplicate_event_ids_within_batch_keep_first(container: AppContainer) -> None:
    session = _start(container)

    container.count_event_log.submit_events(
        session.id,
        actor_id="alice",
        actor_name=None,
        events=[
            EventSubmission(event_id="e1", item_key="123", delta=1),
            EventSubmission(event_id="e1", item_key="123", delta=5),
        ],
    )

    assert _totals(container, session.id) == {"123": 1}


def test_submission_order_does_not_change_totals(container: AppContainer) -> None:
    events = [
        EventSubmission(event_id="e1", item_key="A", delta=3),
        EventSubmission(event_id="e2", item_key="B", delta=1),
        EventSubmission(event_id="e3", item_key="A", delta=-1),
        EventSubmission(event_id="e4", item_key="C", delta=7),
    ]
    actors = ["alice", "bob", "alice", "bob"]
    outcomes = []
    for order in itertools.permutations(range(len(events))):
        session = _start(container)
        for index in order:
            container.count_event_log.submit_events(
                session.id,
                actor_id=actors[index],
                actor_name=None,
                events=[events[index]],
            )
        state = container.totals_aggregator.compute_state(session.id)
        outcomes.append((state.totals, state.contributions))

    assert all(outcome == outcomes[0] for outcome in outcomes)


def test_empty_item_and_zero_delta_are_discarded(
    container: AppContainer, event_repository: InMemoryCountEventRepository
) -> None:
    session = _start(container)

    result = container.count_event_log.submit_events(
        session.id,
        actor_id="alice",
        actor_name=None,
        events=[
            EventSubmission(event_id="e1", item_key="  ", delta=1),
            EventSubmission(event_id="e2", item_key="123", delta=0),
        ],
    )

    assert result.accepted_count == 0
    assert result.totals == []
    assert event_repository.append_calls == 0


def test_item_keys_are_normalized_before_storage(container: AppContainer) -> None:
    session = _start(container)

    container.count_event_log.submit_events(
        session.id,
        actor_id="alice",
        actor_name=None,
        events=[
            EventSubmission(event_id="e1", item_key=" sku 9 ", delta=1),
            EventSubmission(event_id="e2", item_key="SKU9", delta=1),
        ],
    )

    assert _totals(container, session.id) == {"SKU9": 2}


def test_relayed_events_keep_their_actor(container: AppContainer) -> None:
    session = _start(container)

    container.count_event_log.submit_events(
        session.id,
        actor_id="host",
        actor_name="Host",
        events=[
            EventSubmission(event_id="e1", item_key="1", delta=1, actor_id="peer"),
            EventSubmission(event_id="e2", item_key="1", delta=1),
        ],
    )

    state = container.totals_aggregator.compute_state(session.id)
    contributions = {(c.actor_id, c.item_key): c.qty for c in state.contributions}
    assert contributions == {("host", "1"): 1, ("peer", "1"): 1}


def test_submit_advances_last_sync(container: AppContainer) -> None:
    session = _start(container)
    before = datetime.now(tz=UTC)

    result = container.count_event_log.submit_events(
        session.id, actor_id="alice", actor_name=None, events=[]
    )

    assert result.last_sync_at >= before
    refreshed = container.session_service.get_session(session.id)
    assert refreshed.last_sync_at == result.last_sync_at


def test_submit_validates_before_touching_store(container: AppContainer) -> None:
    session = _start(container)

    with pytest.raises(InventoryValidationError) as excinfo:
        container.count_event_log.submit_events(
            session.id,
            actor_id=" ",
            actor_name=None,
            events=[
                EventSubmission(event_id="", item_key="1", delta=1),
                EventSubmission(event_id="e2", item_key="1", delta="3"),  # type: ignore[arg-type]
            ],
        )

    assert excinfo.value.field_errors == {
        "actor_id": "required",
        "events[0].event_id": "required",
        "events[1].delta": "must be an integer",
    }
    participants = container.participant_registry.list_participants(session.id)
    assert [p.participant_id for p in participants] == ["host"]


def test_submit_rejects_oversized_batch(container: AppContainer) -> None:
    session = _start(container)
    events = [
        EventSubmission(event_id=f"e{index}", item_key="1", delta=1)
        for index in range(container.settings.max_batch_events + 1)
    ]

    with pytest.raises(InventoryValidationError):
        container.count_event_log.submit_events(
            session.id, actor_id="alice", actor_name=None, events=events
        )


def test_submit_to_missing_session(container: AppContainer) -> None:
    with pytest.raises(SessionNotFoundError):
        container.count_event_log.submit_events(
            uuid4(),
            actor_id="alice",
            actor_name=None,
            events=[EventSubmission(event_id="e1", item_key="1", delta=1)],
        )


@pytest.mark.parametrize("lock", [True, False])
def test_submit_after_finalize_is_rejected(container: AppContainer, lock: bool) -> None:
    session = _start(container)
    container.count_event_log.submit_events(
        session.id,
        actor_id="alice",
        actor_name=None,
        events=[EventSubmission(event_id="e1", item_key="1", delta=1)],
    )
    container.finalization_service.finalize(session.id, "manager", lock=lock)

    with pytest.raises(SessionStateConflictError):
        container.count_event_log.submit_events(
            session.id,
            actor_id="alice",
            actor_name=None,
            events=[EventSubmission(event_id="e2", item_key="1", delta=5)],
        )

    assert _totals(container, session.id) == {"1": 1}


def test_store_level_rejection_when_session_closes_mid_submit(
    container: AppContainer,
) -> None:
    session = _start(container)
    sessions = container.session_service
    original_require_active = sessions.require_active

    def check_then_close(session_id):
        active = original_require_active(session_id)
        sessions.begin_finalize(session_id)
        return active

    sessions.require_active = check_then_close  # type: ignore[method-assign]

    with pytest.raises(SessionStateConflictError):
        container.count_event_log.submit_events(
            session.id,
            actor_id="alice",
            actor_name="Alice",
            events=[EventSubmission(event_id="e1", item_key="1", delta=1)],
        )

    assert _totals(container, session.id) == {}
    participants = container.participant_registry.list_participants(session.id)
    assert [p.participant_id for p in participants] == ["host"]
    assert sessions.get_session(session.id).last_sync_at is None
