"""Tests for the pydantic input schemas."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from bto_engine.domain.enums import ApplicationStatus, FlatType, UserRole
from bto_engine.schemas import ProjectCreate, ProjectUpdate, ReportQuery, UserCreate


class TestUserCreate:
    def test_valid_user_defaults_to_applicant(self):
        user = UserCreate(nric="S1234567A", name="John", age=35, marital_status="single")
        assert user.role == UserRole.APPLICANT
        assert user.password is None

    @pytest.mark.parametrize("nric", ["1234567A", "A1234567B", "S123456A", "s1234567a", "S1234567"])
    def test_malformed_nric_rejected(self, nric):
        with pytest.raises(ValidationError):
            UserCreate(nric=nric, name="John", age=35, marital_status="single")


class TestProjectCreate:
    def _payload(self, **overrides):
        payload = {
            "name": "Acacia Breeze",
            "neighborhood": "Yishun",
            "opening_date": "2025-02-15",
            "closing_date": "2025-03-20",
            "units": {"2-Room": 2, "3-Room": 3},
            "prices": {"2-Room": 350000, "3-Room": 450000},
            "officer_slots": 3,
        }
        payload.update(overrides)
        return payload

    def test_to_draft(self):
        draft = ProjectCreate.model_validate(self._payload()).to_draft()

        assert draft.units == {FlatType.TWO_ROOM: 2, FlatType.THREE_ROOM: 3}
        assert draft.opening_date == date(2025, 2, 15)
        assert draft.officer_slots == 3
        assert draft.visible is False

    def test_window_must_not_be_inverted(self):
        with pytest.raises(ValidationError):
            ProjectCreate.model_validate(self._payload(closing_date="2025-01-01"))

    def test_slots_capped_at_ten(self):
        with pytest.raises(ValidationError):
            ProjectCreate.model_validate(self._payload(officer_slots=11))

    def test_negative_units_rejected(self):
        with pytest.raises(ValidationError):
            ProjectCreate.model_validate(self._payload(units={"2-Room": -1}))


def test_project_update_only_carries_given_fields():
    changes = ProjectUpdate(neighborhood="Punggol").to_changes()
    assert changes.neighborhood == "Punggol"
    assert changes.units is None
    assert changes.officer_slots is None


class TestReportQuery:
    def test_to_criteria(self):
        criteria = ReportQuery(
            project_name="Oak", min_age=21, max_age=40, statuses=["booked"]
        ).to_criteria()
        assert criteria.project_name == "Oak"
        assert criteria.statuses == frozenset({ApplicationStatus.BOOKED})

    def test_inverted_age_range_rejected(self):
        with pytest.raises(ValidationError):
            ReportQuery(min_age=50, max_age=20)
