"""
Unit tests for value objects and entities.
"""

import dataclasses
from datetime import datetime, timezone

import pytest

from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.domain.value_objects.customer_snapshot import CustomerSnapshot
from dispatch_portal.domain.value_objects.geo_point import GeoPoint
from dispatch_portal.domain.value_objects.request_status import (
    RequestStatus,
    TransitionTrigger,
)


def _customer() -> CustomerSnapshot:
    return CustomerSnapshot(
        name="Jane Doe",
        phone="555-0100",
        address="1 Times Square",
        location=GeoPoint(40.758, -73.9855),
    )


class TestRequestStatus:
    """Test RequestStatus value object."""

    def test_enum_values(self):
        """Test that all expected enum values exist."""
        expected_values = [
            "submitted",
            "unassigned",
            "assigned",
            "confirmed",
            "in_progress",
            "completed",
            "closed",
            "rejected",
        ]
        assert [status.value for status in RequestStatus] == expected_values

    def test_is_terminal(self):
        """Test is_terminal for all statuses."""
        assert RequestStatus.CLOSED.is_terminal() is True
        assert RequestStatus.REJECTED.is_terminal() is True

        for status in RequestStatus:
            if status not in (RequestStatus.CLOSED, RequestStatus.REJECTED):
                assert status.is_terminal() is False

    def test_is_assignable(self):
        """Only submitted and unassigned requests can be assigned."""
        assignable = {status for status in RequestStatus if status.is_assignable()}
        assert assignable == {RequestStatus.SUBMITTED, RequestStatus.UNASSIGNED}

    def test_is_post_completion(self):
        """Rating is possible once the work is completed."""
        assert RequestStatus.COMPLETED.is_post_completion() is True
        assert RequestStatus.CLOSED.is_post_completion() is True
        assert RequestStatus.IN_PROGRESS.is_post_completion() is False

    def test_enum_comparison(self):
        """Test enum comparison with plain strings."""
        assert RequestStatus.IN_PROGRESS == "in_progress"
        assert RequestStatus("confirmed") is RequestStatus.CONFIRMED


class TestTransitionTrigger:
    """Test TransitionTrigger value object."""

    def test_partner_driven_triggers(self):
        """Assign, reject and close have dedicated operations."""
        partner_driven = {trigger for trigger in TransitionTrigger if trigger.is_partner_driven()}
        assert partner_driven == {
            TransitionTrigger.ACCEPT,
            TransitionTrigger.START,
            TransitionTrigger.COMPLETE,
            TransitionTrigger.REVERT_TO_CONFIRMED,
            TransitionTrigger.REOPEN,
        }


class TestGeoPoint:
    """Test GeoPoint value object."""

    def test_valid_point(self):
        point = GeoPoint(40.7128, -74.0060)
        assert point.to_dict() == {"lat": 40.7128, "lng": -74.0060}

    @pytest.mark.parametrize(
        "lat, lng",
        [
            (91.0, 0.0),
            (-90.5, 0.0),
            (0.0, 180.5),
            (float("nan"), 0.0),
            (0.0, float("inf")),
            (None, 0.0),
            ("40.7", "-74.0"),
            (True, 0.0),
        ],
    )
    def test_invalid_coordinates(self, lat, lng):
        """Out-of-range, non-finite and non-numeric values are unusable."""
        assert GeoPoint.is_valid(lat, lng) is False
        assert GeoPoint.try_create(lat, lng) is None

    def test_constructor_rejects_invalid(self):
        with pytest.raises(ValueError):
            GeoPoint(100.0, 0.0)

    def test_boundaries_are_valid(self):
        assert GeoPoint.try_create(90, -180) == GeoPoint(90.0, -180.0)

    def test_immutability(self):
        point = GeoPoint(1.0, 2.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            point.lat = 3.0


class TestCustomerSnapshot:
    """Test CustomerSnapshot value object."""

    def test_to_dict(self):
        assert _customer().to_dict() == {
            "name": "Jane Doe",
            "phone": "555-0100",
            "address": "1 Times Square",
            "lat": 40.758,
            "lng": -73.9855,
        }

    @pytest.mark.parametrize("field", ["name", "phone", "address"])
    def test_blank_fields_rejected(self, field):
        data = {
            "name": "Jane Doe",
            "phone": "555-0100",
            "address": "1 Times Square",
            "location": GeoPoint(40.758, -73.9855),
        }
        data[field] = "   "
        with pytest.raises(ValueError):
            CustomerSnapshot(**data)


class TestActor:
    """Test Actor value object."""

    def test_system_actor(self):
        actor = Actor.system(1)
        assert actor.id == 1
        assert actor.role == ActorRole.SYSTEM

    def test_anonymous_actor(self):
        assert Actor.anonymous() == Actor(id=None, role=None)


class TestServiceRequestEntity:
    """Test ServiceRequest entity invariants."""

    def test_defaults(self):
        submitted_at = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        request = ServiceRequest(
            request_number="REQ-20240115-0001",
            category_id=1,
            pickup_option_id=1,
            customer=_customer(),
            submitted_at=submitted_at,
        )

        assert request.status == RequestStatus.SUBMITTED
        assert request.version == 1
        assert request.updated_at == submitted_at
        assert request.has_active_assignment is False
        assert request.is_rated is False

    def test_naive_timestamps_become_utc(self):
        request = ServiceRequest(
            request_number="REQ-20240115-0001",
            category_id=1,
            pickup_option_id=1,
            customer=_customer(),
            submitted_at=datetime(2024, 1, 15, 10, 0),
        )
        assert request.submitted_at.tzinfo == timezone.utc

    def test_partner_and_branch_go_together(self):
        with pytest.raises(ValueError):
            ServiceRequest(
                request_number="REQ-20240115-0001",
                category_id=1,
                pickup_option_id=1,
                customer=_customer(),
                submitted_at=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
                partner_id=10,
            )

    def test_rating_range(self):
        with pytest.raises(ValueError):
            ServiceRequest(
                request_number="REQ-20240115-0001",
                category_id=1,
                pickup_option_id=1,
                customer=_customer(),
                submitted_at=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
                rating=6,
            )

    def test_belongs_to_customer(self):
        request = ServiceRequest(
            request_number="REQ-20240115-0001",
            category_id=1,
            pickup_option_id=1,
            customer=_customer(),
            submitted_at=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
            customer_id=7,
        )
        assert request.belongs_to_customer(7) is True
        assert request.belongs_to_customer(8) is False


class TestBranchEntity:
    """Test Branch entity."""

    def test_location_missing(self):
        assert Branch(id=1, partner_id=1).location is None

    def test_location_out_of_range(self):
        assert Branch(id=1, partner_id=1, lat=120.0, lng=0.0).location is None

    def test_belongs_to(self):
        branch = Branch(id=1, partner_id=5, lat=1.0, lng=1.0)
        assert branch.belongs_to(5) is True
        assert branch.belongs_to(6) is False
        assert branch.location == GeoPoint(1.0, 1.0)
