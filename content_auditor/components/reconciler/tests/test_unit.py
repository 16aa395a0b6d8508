"""
Reconciler component unit tests.

Tests for publish-now, bump, authorization, and concurrency handling.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from content_auditor.components.reconciler import (
    ReconcilerComponent,
    TransitionRequest,
    reconcile,
    validate_request,
)
from content_auditor.domain.entities import ItemStatus, ScheduledItem, TransitionKind
from content_auditor.domain.errors import LookupFailedError, MutationError, StaleItemError
from content_auditor.domain.policy import AuditPolicy

# --- Mock Implementations ---


class MockItemStore:
    """In-memory lookup + conditional sink for testing."""

    def __init__(self) -> None:
        self._items: dict[str, ScheduledItem] = {}
        self.apply_calls = 0
        self.lookup_calls = 0

    def add(self, item: ScheduledItem) -> None:
        self._items[item.id] = item

    def get(self, item_id: str) -> ScheduledItem | None:
        self.lookup_calls += 1
        return self._items.get(item_id)

    def apply(
        self,
        item_id: str,
        *,
        expected: ScheduledItem,
        new_status: ItemStatus | None = None,
        new_scheduled_at_utc: datetime | None = None,
    ) -> None:
        self.apply_calls += 1
        current = self._items.get(item_id)
        if (
            current is None
            or current.status != expected.status
            or current.scheduled_at_utc != expected.scheduled_at_utc
        ):
            raise StaleItemError(item_id)
        updates: dict[str, object] = {}
        if new_status is not None:
            updates["status"] = new_status
        if new_scheduled_at_utc is not None:
            updates["scheduled_at_utc"] = new_scheduled_at_utc
        self._items[item_id] = current.model_copy(update=updates)


class RacingItemStore(MockItemStore):
    """Another actor publishes the item between lookup and write."""

    def get(self, item_id: str) -> ScheduledItem | None:
        item = super().get(item_id)
        if item is not None:
            self._items[item_id] = item.model_copy(update={"status": "published"})
        return item


class FailingSink:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc
        self.apply_calls = 0

    def apply(self, item_id: str, **kwargs: object) -> None:
        self.apply_calls += 1
        raise self._exc


class FailingLookup:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def get(self, item_id: str) -> ScheduledItem | None:
        raise self._exc


class MockAuthorizer:
    """Single-use tokens scoped to (item_id, kind)."""

    def __init__(self) -> None:
        self._issued: dict[str, tuple[str, str]] = {}
        self._consumed: set[str] = set()
        self.verify_calls = 0

    def issue(self, item_id: str, kind: TransitionKind) -> str:
        token = uuid4().hex
        self._issued[token] = (item_id, kind)
        return token

    def verify(self, token: str, item_id: str, kind: TransitionKind) -> bool:
        self.verify_calls += 1
        if token in self._consumed or self._issued.get(token) != (item_id, kind):
            return False
        self._consumed.add(token)
        return True


class MockClock:
    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time


# --- Fixtures ---


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def store() -> MockItemStore:
    return MockItemStore()


@pytest.fixture
def authorizer() -> MockAuthorizer:
    return MockAuthorizer()


@pytest.fixture
def component(
    store: MockItemStore, authorizer: MockAuthorizer, clock: MockClock
) -> ReconcilerComponent:
    return ReconcilerComponent(
        lookup=store,
        authorizer=authorizer,
        sink=store,
        clock=clock,
    )


@pytest.fixture
def late_item(store: MockItemStore, clock: MockClock) -> ScheduledItem:
    """A scheduled item two hours overdue."""
    item = ScheduledItem(
        id="42",
        scheduled_at_utc=clock.now_utc() - timedelta(hours=2),
        status="scheduled",
        title="Missed post",
    )
    store.add(item)
    return item


def publish_request(item_id: str, token: str) -> TransitionRequest:
    return TransitionRequest(item_id=item_id, kind="publish_now", authorization_token=token)


def bump_request(
    item_id: str, token: str, duration: timedelta | None = timedelta(minutes=60)
) -> TransitionRequest:
    return TransitionRequest(
        item_id=item_id,
        kind="bump",
        authorization_token=token,
        bump_duration=duration,
    )


# --- Publish Now ---


class TestPublishNow:
    def test_publish_scheduled_item(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "publish_now")

        output = component.run(publish_request(late_item.id, token))

        assert output.result == "published"
        assert output.success
        assert output.errors == []
        stored = store.get(late_item.id)
        assert stored is not None
        assert stored.status == "published"
        assert stored.scheduled_at_utc == clock.now_utc()
        assert output.new_scheduled_at_utc == clock.now_utc()

    def test_replayed_token_fails_authorization(
        self,
        component: ReconcilerComponent,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "publish_now")
        component.run(publish_request(late_item.id, token))

        output = component.run(publish_request(late_item.id, token))

        assert output.result == "error"
        assert output.authorization_failed
        assert not output.success

    def test_fresh_token_on_published_item_is_noop(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        component.run(publish_request(late_item.id, authorizer.issue(late_item.id, "publish_now")))
        applies_before = store.apply_calls

        output = component.run(
            publish_request(late_item.id, authorizer.issue(late_item.id, "publish_now"))
        )

        assert output.result == "noop"
        assert output.success
        assert output.errors == []
        assert store.apply_calls == applies_before


# --- Bump ---


class TestBump:
    def test_bump_moves_schedule_forward(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "bump")

        output = component.run(bump_request(late_item.id, token))

        assert output.result == "bumped"
        stored = store.get(late_item.id)
        assert stored is not None
        assert stored.status == "scheduled"
        assert stored.scheduled_at_utc == late_item.scheduled_at_utc + timedelta(minutes=60)

    def test_custom_bump_duration(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "bump")

        component.run(bump_request(late_item.id, token, timedelta(minutes=15)))

        stored = store.get(late_item.id)
        assert stored is not None
        assert stored.scheduled_at_utc == late_item.scheduled_at_utc + timedelta(minutes=15)

    @pytest.mark.parametrize(
        "duration",
        [timedelta(0), timedelta(minutes=-30), None],
    )
    def test_non_positive_bump_uses_default(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
        duration: timedelta | None,
    ) -> None:
        token = authorizer.issue(late_item.id, "bump")

        output = component.run(bump_request(late_item.id, token, duration))

        assert output.result == "bumped"
        stored = store.get(late_item.id)
        assert stored is not None
        assert stored.scheduled_at_utc == late_item.scheduled_at_utc + timedelta(minutes=60)

    def test_policy_default_bump(
        self,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
        late_item: ScheduledItem,
    ) -> None:
        policy = AuditPolicy(default_bump=timedelta(minutes=10))
        token = authorizer.issue(late_item.id, "bump")

        output = reconcile(
            bump_request(late_item.id, token, timedelta(0)),
            lookup=store,
            authorizer=authorizer,
            sink=store,
            clock=clock,
            policy=policy,
        )

        assert output.new_scheduled_at_utc == late_item.scheduled_at_utc + timedelta(minutes=10)


# --- Authorization ---


class TestAuthorization:
    def test_token_for_other_kind_rejected(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "bump")

        output = component.run(publish_request(late_item.id, token))

        assert output.authorization_failed
        assert store.lookup_calls == 0
        assert store.apply_calls == 0

    def test_token_for_other_item_rejected(
        self,
        component: ReconcilerComponent,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue("other-item", "publish_now")

        output = component.run(publish_request(late_item.id, token))

        assert output.authorization_failed

    def test_auth_failure_precedes_lookup_for_missing_item(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
    ) -> None:
        output = component.run(publish_request("missing", "forged"))

        assert output.authorization_failed
        assert store.lookup_calls == 0

    def test_authorizer_timeout_is_error(
        self,
        store: MockItemStore,
        clock: MockClock,
        late_item: ScheduledItem,
    ) -> None:
        class SlowAuthorizer:
            def verify(self, token: str, item_id: str, kind: TransitionKind) -> bool:
                raise TimeoutError

        output = reconcile(
            publish_request(late_item.id, "t"),
            lookup=store,
            authorizer=SlowAuthorizer(),
            sink=store,
            clock=clock,
        )

        assert output.result == "error"
        assert output.errors[0].code == "TIMEOUT"


# --- Existence & Concurrency ---


class TestExistence:
    def test_missing_item_is_noop(
        self,
        component: ReconcilerComponent,
        authorizer: MockAuthorizer,
    ) -> None:
        token = authorizer.issue("gone", "publish_now")

        output = component.run(publish_request("gone", token))

        assert output.result == "noop"
        assert output.success

    def test_non_scheduled_item_is_noop(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
    ) -> None:
        store.add(
            ScheduledItem(id="p", scheduled_at_utc=clock.now_utc(), status="published")
        )
        token = authorizer.issue("p", "bump")

        output = component.run(bump_request("p", token))

        assert output.result == "noop"
        assert store.apply_calls == 0

    def test_lost_race_is_noop(
        self,
        authorizer: MockAuthorizer,
        clock: MockClock,
    ) -> None:
        store = RacingItemStore()
        store.add(
            ScheduledItem(
                id="r",
                scheduled_at_utc=clock.now_utc() - timedelta(hours=1),
            )
        )

        output = reconcile(
            publish_request("r", authorizer.issue("r", "publish_now")),
            lookup=store,
            authorizer=authorizer,
            sink=store,
            clock=clock,
        )

        assert output.result == "noop"
        assert store.apply_calls == 1


class TestMutationFailure:
    def test_rejected_write_is_error(
        self,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
        late_item: ScheduledItem,
    ) -> None:
        sink = FailingSink(MutationError("disk full"))

        output = reconcile(
            publish_request(late_item.id, authorizer.issue(late_item.id, "publish_now")),
            lookup=store,
            authorizer=authorizer,
            sink=sink,
            clock=clock,
        )

        assert output.result == "error"
        assert output.errors[0].code == "MUTATION_FAILED"
        assert output.errors[0].message == "disk full"
        assert sink.apply_calls == 1

    def test_sink_timeout_is_error(
        self,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
        late_item: ScheduledItem,
    ) -> None:
        output = reconcile(
            bump_request(late_item.id, authorizer.issue(late_item.id, "bump")),
            lookup=store,
            authorizer=authorizer,
            sink=FailingSink(TimeoutError()),
            clock=clock,
        )

        assert output.result == "error"
        assert output.errors[0].code == "TIMEOUT"


class TestLookupFailure:
    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (LookupFailedError("no such table: scheduled_items"), "LOOKUP_FAILED"),
            (TimeoutError("database is locked"), "TIMEOUT"),
        ],
    )
    def test_lookup_failure_is_error(
        self,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        clock: MockClock,
        exc: Exception,
        code: str,
    ) -> None:
        output = reconcile(
            publish_request("42", authorizer.issue("42", "publish_now")),
            lookup=FailingLookup(exc),
            authorizer=authorizer,
            sink=store,
            clock=clock,
        )

        assert output.result == "error"
        assert not output.success
        assert output.errors[0].code == code
        assert store.apply_calls == 0


class TestBumpOutOfRange:
    def test_overflowing_bump_is_invalid_input(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        late_item: ScheduledItem,
    ) -> None:
        token = authorizer.issue(late_item.id, "bump")

        output = component.run(bump_request(late_item.id, token, timedelta(days=3_000_000)))

        assert output.result == "error"
        assert output.errors[0].code == "INVALID_INPUT"
        assert output.errors[0].field == "bump_duration"
        assert store.apply_calls == 0
        stored = store.get(late_item.id)
        assert stored is not None
        assert stored.scheduled_at_utc == late_item.scheduled_at_utc


# --- Input Validation ---)


class TestInputValidation:
    @pytest.mark.parametrize("item_id", ["", "   "])
    def test_missing_item_id_rejected_before_collaborators(
        self,
        component: ReconcilerComponent,
        store: MockItemStore,
        authorizer: MockAuthorizer,
        item_id: str,
    ) -> None:
        output = component.run(publish_request(item_id, "anything"))

        assert output.result == "error"
        assert output.errors[0].code == "INVALID_INPUT"
        assert output.errors[0].field == "item_id"
        assert authorizer.verify_calls == 0
        assert store.lookup_calls == 0

    def test_unknown_kind_rejected(self) -> None:
        req = TransitionRequest(
            item_id="1",
            kind="unpublish",  # type: ignore[arg-type]
            authorization_token="t",
        )

        errors = validate_request(req)

        assert [e.field for e in errors] == ["kind"]
