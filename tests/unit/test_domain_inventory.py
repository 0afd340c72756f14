"""Tests for the inventory ledger (flat units and officer slots)."""

from __future__ import annotations

import threading
from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bto_engine.domain import models as dm
from bto_engine.domain.enums import FlatType
from bto_engine.domain.errors import InvalidRequest
from bto_engine.domain.inventory import InventoryLedger


def _project(units: int = 1, slots: int = 2) -> dm.Project:
    return dm.Project(
        name=dm.ProjectName("Oak"),
        neighborhood="Yishun",
        opening_date=date(2025, 2, 1),
        closing_date=date(2025, 4, 1),
        manager_id=dm.UserID("T7654321B"),
        units={FlatType.TWO_ROOM: units, FlatType.THREE_ROOM: 0},
        staff_slots=dm.StaffSlots(max_slots=slots),
        visible=True,
    )


class TestFlatUnits:
    def test_decrement_takes_one_unit(self):
        ledger = InventoryLedger()
        project = _project(units=2)

        assert ledger.decrement(project, FlatType.TWO_ROOM) is True
        assert ledger.units_remaining(project, FlatType.TWO_ROOM) == 1

    def test_decrement_at_zero_fails_and_keeps_zero(self):
        ledger = InventoryLedger()
        project = _project(units=0)

        assert ledger.decrement(project, FlatType.TWO_ROOM) is False
        assert ledger.units_remaining(project, FlatType.TWO_ROOM) == 0

    def test_unknown_flat_type_counts_as_zero(self):
        ledger = InventoryLedger()
        project = _project()
        del project.units[FlatType.THREE_ROOM]

        assert ledger.has_units(project, FlatType.THREE_ROOM) is False
        assert ledger.decrement(project, FlatType.THREE_ROOM) is False

    def test_increment_has_no_upper_clamp(self):
        ledger = InventoryLedger()
        project = _project(units=1)

        assert ledger.increment(project, FlatType.TWO_ROOM) == 2

    def test_restock_rejects_negative(self):
        ledger = InventoryLedger()
        with pytest.raises(InvalidRequest):
            ledger.restock(_project(), FlatType.TWO_ROOM, -1)

    def test_snapshot_is_read_only(self):
        ledger = InventoryLedger()
        view = ledger.snapshot(_project(units=3))

        assert view[FlatType.TWO_ROOM] == 3
        with pytest.raises(TypeError):
            view[FlatType.TWO_ROOM] = 10  # type: ignore[index]

    def test_concurrent_decrements_never_oversell(self):
        ledger = InventoryLedger()
        project = _project(units=5)
        results: list[bool] = []
        barrier = threading.Barrier(20)

        def worker() -> None:
            barrier.wait()
            results.append(ledger.decrement(project, FlatType.TWO_ROOM))

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 5
        assert ledger.units_remaining(project, FlatType.TWO_ROOM) == 0


@given(
    start=st.integers(min_value=0, max_value=5),
    ops=st.lists(st.sampled_from(["take", "return"]), max_size=40),
)
def test_units_never_negative(start, ops):
    ledger = InventoryLedger()
    project = _project(units=start)
    expected = start
    for op in ops:
        if op == "take":
            taken = ledger.decrement(project, FlatType.TWO_ROOM)
            assert taken is (expected > 0)
            expected = max(expected - 1, 0)
        else:
            ledger.increment(project, FlatType.TWO_ROOM)
            expected += 1
        assert ledger.units_remaining(project, FlatType.TWO_ROOM) >= 0
    assert ledger.units_remaining(project, FlatType.TWO_ROOM) == expected


class TestOfficerSlots:
    def test_assign_until_full(self):
        ledger = InventoryLedger()
        project = _project(slots=1)

        assert ledger.assign_officer(project, dm.UserID("T0000001A")) is True
        assert ledger.assign_officer(project, dm.UserID("T0000002A")) is False
        assert ledger.remaining_officer_slots(project) == 0

    def test_assign_is_idempotent_per_officer(self):
        ledger = InventoryLedger()
        project = _project(slots=1)

        ledger.assign_officer(project, dm.UserID("T0000001A"))
        assert ledger.assign_officer(project, dm.UserID("T0000001A")) is True
        assert project.staff_slots.assigned == ["T0000001A"]

    def test_release_frees_slot(self):
        ledger = InventoryLedger()
        project = _project(slots=1)
        ledger.assign_officer(project, dm.UserID("T0000001A"))

        assert ledger.release_officer(project, dm.UserID("T0000001A")) is True
        assert ledger.release_officer(project, dm.UserID("T0000001A")) is False
        assert ledger.remaining_officer_slots(project) == 1

    def test_resize_below_assigned_is_rejected(self):
        ledger = InventoryLedger()
        project = _project(slots=2)
        ledger.assign_officer(project, dm.UserID("T0000001A"))
        ledger.assign_officer(project, dm.UserID("T0000002A"))

        with pytest.raises(InvalidRequest):
            ledger.resize_officer_slots(project, 1)
        ledger.resize_officer_slots(project, 2)
        assert project.staff_slots.max_slots == 2
