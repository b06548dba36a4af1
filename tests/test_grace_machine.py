"""
Tests for the grace-period state machine.

Validates:
- STARTED -> CONTINUING -> EXPIRED with G=2
- Requalification clears the record
- Protected holders are never tracked
- G=0 removes immediately
"""
import pytest
from datetime import timedelta

from hierarch.engine import GraceStateMachine
from hierarch.models import GraceTransition
from hierarch.store import GraceStore

from tests.conftest import NOW, make_grace_record


def _advance(machine, store, user_id="1", protected=False, now=NOW):
    return machine.advance(user_id, f"user-{user_id}", is_protected=protected, store=store, now=now)


class TestGraceStateMachine:
    def test_negative_grace_rejected(self):
        with pytest.raises(ValueError):
            GraceStateMachine(grace_periods=-1)

    def test_expiry_on_third_disqualified_run(self):
        machine = GraceStateMachine(grace_periods=2)
        store = GraceStore()

        first = _advance(machine, store)
        assert first.transition == GraceTransition.STARTED
        assert (first.weeks_out, first.weeks_remaining) == (1, 1)
        assert store.get("1").weeks_out == 1

        second = _advance(machine, store, now=NOW + timedelta(days=7))
        assert second.transition == GraceTransition.CONTINUING
        assert (second.weeks_out, second.weeks_remaining) == (2, 0)
        assert store.get("1").first_week_out == NOW

        third = _advance(machine, store, now=NOW + timedelta(days=14))
        assert third.transition == GraceTransition.EXPIRED
        assert third.removes_role
        assert "1" not in store

    def test_requalify_clears_record(self):
        machine = GraceStateMachine(grace_periods=2)
        store = GraceStore({"1": make_grace_record("1", weeks_out=2)})

        assert machine.requalify("1", store) is True
        assert "1" not in store
        assert machine.requalify("1", store) is False

    def test_requalified_user_starts_fresh(self):
        machine = GraceStateMachine(grace_periods=2)
        store = GraceStore()
        _advance(machine, store)
        _advance(machine, store)
        machine.requalify("1", store)

        step = _advance(machine, store)
        assert step.transition == GraceTransition.STARTED
        assert step.weeks_out == 1

    def test_protected_never_tracked(self):
        machine = GraceStateMachine(grace_periods=2)
        store = GraceStore()
        for _ in range(5):
            step = _advance(machine, store, protected=True)
            assert step.transition == GraceTransition.PROTECTED
            assert not step.removes_role
        assert len(store) == 0

    def test_protected_drops_existing_record(self):
        machine = GraceStateMachine(grace_periods=2)
        store = GraceStore({"1": make_grace_record("1")})
        _advance(machine, store, protected=True)
        assert "1" not in store

    def test_grace_disabled_removes_immediately(self):
        machine = GraceStateMachine(grace_periods=0)
        store = GraceStore()
        step = _advance(machine, store)
        assert step.transition == GraceTransition.REMOVED
        assert step.removes_role
        assert len(store) == 0

    def test_grace_of_one_period(self):
        machine = GraceStateMachine(grace_periods=1)
        store = GraceStore()
        assert _advance(machine, store).weeks_remaining == 0
        assert _advance(machine, store).transition == GraceTransition.EXPIRED
