"""
Unit tests for the SLA policy.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.value_objects.customer_snapshot import CustomerSnapshot
from dispatch_portal.domain.value_objects.geo_point import GeoPoint

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def policy():
    return SlaPolicy(default_timeout_minutes=15, max_timeout_minutes=60)


class TestResolveTimeout:
    """Test parsing of the configured timeout."""

    @pytest.mark.parametrize(
        "raw_value, expected",
        [
            (None, 15),
            ("30", 30),
            (" 20 ", 20),
            ("60", 60),
            (45, 45),
            ("abc", 15),
            ("12.5", 15),
            ("", 15),
            ("0", 15),
            ("-5", 15),
            ("61", 15),
            (True, 15),
        ],
    )
    def test_resolve_timeout(self, policy, raw_value, expected):
        assert policy.resolve_timeout(raw_value) == expected

    @pytest.mark.parametrize(
        "partner_value, global_value, expected",
        [
            ("25", "40", 25),
            (None, "40", 40),
            ("abc", "40", 40),
            ("0", "40", 40),
            ("90", None, 15),
            (None, None, 15),
        ],
    )
    def test_most_specific_usable_value_wins(
        self, policy, partner_value, global_value, expected
    ):
        assert policy.resolve_timeout(partner_value, global_value) == expected

    def test_parse_timeout_reports_unusable_values(self, policy):
        assert policy.parse_timeout("30") == 30
        assert policy.parse_timeout("61") is None
        assert policy.parse_timeout(None) is None

    def test_default_must_be_positive(self):
        with pytest.raises(ValueError):
            SlaPolicy(default_timeout_minutes=0)


class TestComputeDeadline:
    """Test deadline computation."""

    def test_deadline_is_assignment_plus_timeout(self, policy):
        assigned_at = T0 + timedelta(minutes=1)
        assert policy.compute_deadline(assigned_at, 15) == T0 + timedelta(minutes=16)

    def test_naive_assignment_time_treated_as_utc(self, policy):
        deadline = policy.compute_deadline(datetime(2024, 1, 15, 10, 0), 15)
        assert deadline == T0 + timedelta(minutes=15)

    def test_non_positive_timeout_rejected(self, policy):
        with pytest.raises(ValueError):
            policy.compute_deadline(T0, 0)

    def test_non_integer_timeout_rejected(self, policy):
        with pytest.raises(TypeError):
            policy.compute_deadline(T0, "15")


class TestRemainingMinutes:
    """Test remaining time and expiry."""

    def test_partial_minutes_round_up(self, policy):
        deadline = T0 + timedelta(minutes=15)
        assert policy.remaining_minutes(deadline, T0 + timedelta(seconds=30)) == 15
        assert policy.remaining_minutes(deadline, T0 + timedelta(minutes=14, seconds=59)) == 1

    def test_zero_at_deadline(self, policy):
        deadline = T0 + timedelta(minutes=15)
        assert policy.remaining_minutes(deadline, deadline) == 0
        assert policy.is_expired(deadline, deadline) is True

    def test_not_expired_one_second_before(self, policy):
        deadline = T0 + timedelta(minutes=15)
        assert policy.is_expired(deadline, deadline - timedelta(seconds=1)) is False

    def test_negative_after_deadline(self, policy):
        deadline = T0 + timedelta(minutes=15)
        assert policy.remaining_minutes(deadline, deadline + timedelta(seconds=90)) == -1
        assert policy.remaining_minutes(deadline, deadline + timedelta(minutes=5)) == -5

    def test_remaining_is_monotonic(self, policy):
        """Remaining time never goes up as the clock moves forward."""
        deadline = T0 + timedelta(minutes=15)
        samples = [
            policy.remaining_minutes(deadline, T0 + timedelta(seconds=step * 17))
            for step in range(0, 80)
        ]
        assert all(later <= earlier for earlier, later in zip(samples, samples[1:]))


class TestSlaStatus:
    """Test SLA status snapshots."""

    def _request(self, **overrides) -> ServiceRequest:
        return replace(
            ServiceRequest(
                request_number="REQ-20240115-0001",
                category_id=1,
                pickup_option_id=1,
                customer=CustomerSnapshot(
                    name="Jane", phone="555", address="Main St", location=GeoPoint(1.0, 1.0)
                ),
                submitted_at=T0,
            ),
            **overrides,
        )

    def test_without_deadline(self, policy):
        status = policy.status(self._request(), T0)

        assert status.deadline is None
        assert status.remaining_minutes is None
        assert status.expired is False

    def test_with_deadline(self, policy):
        deadline = T0 + timedelta(minutes=15)
        request = self._request(
            partner_id=1, branch_id=1, assigned_at=T0, sla_deadline=deadline
        )

        running = policy.status(request, T0 + timedelta(minutes=5))
        expired = policy.status(request, T0 + timedelta(minutes=20))

        assert running.remaining_minutes == 10
        assert running.expired is False
        assert expired.remaining_minutes == -5
        assert expired.expired is True
        assert expired.to_dict()["deadline"] == deadline.isoformat()
