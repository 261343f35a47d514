"""
Unit tests for the entitlement evaluator.
"""

import pytest
from datetime import datetime, timedelta, timezone

from shared.errors import PaywallError
from service_entitlements.app.entitlements import evaluator
from service_entitlements.app.entitlements.models import (
    SubscriptionRecord, Entitlements, Capability, PAID_PLANS
)


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def trialing(trial_end, advice_consumed=False):
    return SubscriptionRecord(
        status="trialing",
        plan="free",
        trial_start=(NOW - timedelta(days=1)).isoformat(),
        trial_end=trial_end,
        advice_consumed=advice_consumed
    )


class TestEvaluate:
    """Test cases for evaluate()."""

    def test_no_subscription_is_all_false(self):
        """Test that a missing subscription grants nothing."""
        result = evaluator.evaluate(None, now=NOW)

        assert result == Entitlements()
        assert result.can_scan is False
        assert result.is_paid is False
        assert result.trial_ends_at is None

    def test_lifetime_active_grants_everything(self):
        """Test lifetime plan with active status."""
        sub = SubscriptionRecord(status="active", plan="lifetime")

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_lifetime is True
        assert result.is_paid is True
        assert result.can_scan is True
        assert result.can_use_coach is True
        assert result.can_see_full_issues is True
        assert result.can_rescan is True
        assert result.has_advice_remaining is True
        assert result.is_trial_active is False
        assert result.trial_ends_at is None

    @pytest.mark.parametrize("plan", sorted(PAID_PLANS - {"lifetime"}))
    def test_active_paid_plans_grant_everything(self, plan):
        """Test every allow-listed paid plan."""
        sub = SubscriptionRecord(status="active", plan=plan, advice_consumed=True)

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_paid is True
        assert result.is_lifetime is False
        assert result.can_scan is True
        assert result.can_use_coach is True
        assert result.can_rescan is True
        assert result.has_advice_remaining is True
        assert result.trial_ends_at is None

    def test_lifetime_not_active_is_not_paid(self):
        """Test lifetime plan on a canceled subscription."""
        sub = SubscriptionRecord(status="canceled", plan="lifetime")

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_lifetime is False
        assert result.is_paid is False
        assert result.can_scan is False

    def test_active_unknown_plan_is_not_paid(self):
        """Test that plans outside the allow-list get no paid access."""
        sub = SubscriptionRecord(status="active", plan="free")

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_paid is False
        assert result.can_use_coach is False

    def test_past_due_paid_plan_is_locked(self):
        """Test a paid plan whose payment is past due."""
        sub = SubscriptionRecord(status="past_due", plan="pro")

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_paid is False
        assert result.can_scan is False
        assert result.can_rescan is False

    def test_active_trial_with_advice_can_scan(self):
        """Test trial one hour from expiry with advice unused."""
        trial_end = NOW + timedelta(hours=1)
        sub = trialing(trial_end.isoformat())

        result = evaluator.evaluate(sub, now=NOW)

        assert result.can_scan is True
        assert result.is_paid is False
        assert result.is_lifetime is False
        assert result.is_trial_active is True
        assert result.has_advice_remaining is True
        assert result.can_use_coach is False
        assert result.can_see_full_issues is False
        assert result.can_rescan is False
        assert result.trial_ends_at == trial_end

    def test_active_trial_with_advice_consumed_cannot_scan(self):
        """Test trial whose single advice was already used."""
        sub = trialing((NOW + timedelta(days=2)).isoformat(), advice_consumed=True)

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is True
        assert result.has_advice_remaining is False
        assert result.can_scan is False
        assert result.trial_ends_at is not None

    def test_missing_advice_flag_counts_as_remaining(self):
        """Test that only an explicit True consumes the advice."""
        sub = trialing((NOW + timedelta(days=1)).isoformat(), advice_consumed=None)

        result = evaluator.evaluate(sub, now=NOW)

        assert result.has_advice_remaining is True
        assert result.can_scan is True

    def test_expired_trial(self):
        """Test trial that ended an hour ago."""
        sub = trialing((NOW - timedelta(hours=1)).isoformat())

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is False
        assert result.can_scan is False
        assert result.trial_ends_at is None

    def test_trial_ending_exactly_now_is_expired(self):
        """Test the trial boundary."""
        sub = trialing(NOW.isoformat())

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is False
        assert result.can_scan is False

    def test_canceled_with_future_trial_end_is_not_trial(self):
        """Test that only trialing subscriptions have trials."""
        sub = SubscriptionRecord(
            status="canceled",
            plan="free",
            trial_end=(NOW + timedelta(days=1)).isoformat()
        )

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is False
        assert result.can_scan is False

    def test_unparseable_trial_end_is_expired(self):
        """Test that garbage timestamps degrade to an expired trial."""
        sub = trialing("not-a-date")

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is False
        assert result.can_scan is False
        assert result.trial_ends_at is None

    def test_missing_trial_end_is_expired(self):
        """Test trialing row without a trial end."""
        sub = trialing(None)

        result = evaluator.evaluate(sub, now=NOW)

        assert result.is_trial_active is False

    def test_zulu_and_naive_timestamps(self):
        """Test 'Z' suffixed and naive timestamps are read as UTC."""
        zulu = trialing("2026-03-14T13:00:00Z")
        naive = trialing(datetime(2026, 3, 14, 13, 0))

        assert evaluator.evaluate(zulu, now=NOW).is_trial_active is True
        assert evaluator.evaluate(naive, now=NOW).is_trial_active is True
        assert evaluator.evaluate(zulu, now=NOW).trial_ends_at == NOW + timedelta(hours=1)

    @pytest.mark.parametrize("trial_end,expected", [
        ("2026-03-14 13:00:00.12345+00", datetime(2026, 3, 14, 13, 0, 0, 123450, tzinfo=timezone.utc)),
        ("2026-03-14 15:00:00+02", datetime(2026, 3, 14, 13, 0, tzinfo=timezone.utc)),
        ("2026-03-14T13:00:00.5+0000", datetime(2026, 3, 14, 13, 0, 0, 500000, tzinfo=timezone.utc)),
    ])
    def test_postgres_style_timestamps(self, trial_end, expected):
        """Test timestamps as Postgres renders timestamptz columns."""
        result = evaluator.evaluate(trialing(trial_end), now=NOW)

        assert result.is_trial_active is True
        assert result.can_scan is True
        assert result.trial_ends_at == expected

    def test_evaluate_does_not_mutate_input(self):
        """Test evaluator is side-effect free."""
        sub = trialing((NOW + timedelta(days=1)).isoformat())
        before = SubscriptionRecord(**vars(sub))

        evaluator.evaluate(sub, now=NOW)
        evaluator.evaluate(sub, now=NOW)

        assert sub == before

    def test_from_row_ignores_unknown_columns(self):
        """Test building a record from a database row."""
        row = {
            "user_id": "user-1",
            "status": "active",
            "plan": "pro",
            "stripe_customer_id": "cus_123",
            "updated_at": "2026-03-01T00:00:00Z"
        }

        sub = SubscriptionRecord.from_row(row)

        assert sub.plan == "pro"
        assert sub.stripe_customer_id == "cus_123"
        assert evaluator.evaluate(sub, now=NOW).is_paid is True


class TestPlanQuotas:
    """Test cases for effective tiers and quotas."""

    @pytest.mark.parametrize("plan,scans,coach", [
        ("create", 1, 5),
        ("starter", 2, 10),
        ("pro", 10, None),
        ("elite", None, None),
        ("business", None, None),
        ("lifetime", None, None),
    ])
    def test_paid_tiers(self, plan, scans, coach):
        """Test quotas for active paid plans."""
        quotas = evaluator.plan_quotas(SubscriptionRecord(status="active", plan=plan), now=NOW)

        assert quotas.scan_limit_per_day == scans
        assert quotas.coach_messages_per_hour == coach

    def test_business_is_elite(self):
        """Test business alias."""
        sub = SubscriptionRecord(status="active", plan="business")

        assert evaluator.effective_plan(sub, now=NOW) == "elite"

    def test_mixed_case_plan_matches_entitlements(self):
        """Test quotas agree with evaluate() for a plan outside the exact allow-list."""
        sub = SubscriptionRecord(status="active", plan="PRO")

        entitlements = evaluator.evaluate(sub, now=NOW)
        quotas = evaluator.plan_quotas(sub, now=NOW)

        assert entitlements.is_paid is False
        assert entitlements.can_scan is False
        assert quotas.plan == "free"
        assert quotas.scan_limit_per_day == 0
        assert quotas.coach_messages_per_hour == 0

    def test_active_trial_tier(self):
        """Test quotas during an active trial."""
        quotas = evaluator.plan_quotas(trialing((NOW + timedelta(days=1)).isoformat()), now=NOW)

        assert quotas.plan == "trial"
        assert quotas.scan_limit_per_day == 1
        assert quotas.coach_messages_per_hour == 0

    def test_free_tier(self):
        """Test quotas without any access."""
        expired = evaluator.plan_quotas(trialing((NOW - timedelta(days=1)).isoformat()), now=NOW)
        missing = evaluator.plan_quotas(None, now=NOW)

        for quotas in (expired, missing):
            assert quotas.plan == "free"
            assert quotas.scan_limit_per_day == 0
            assert quotas.coach_messages_per_hour == 0


class TestCapabilityGuards:
    """Test cases for the assert_can_* guards."""

    def test_scan_denied_raises_paywall_error(self):
        """Test scan guard after the trial advice is used."""
        sub = trialing((NOW + timedelta(days=1)).isoformat(), advice_consumed=True)

        with pytest.raises(PaywallError) as exc_info:
            evaluator.assert_can_scan(sub, now=NOW)

        assert exc_info.value.code == evaluator.PAYWALL_SCAN_LIMIT
        assert exc_info.value.status_code == 403
        assert exc_info.value.details["capability"] == "scan"

    @pytest.mark.parametrize("guard,code", [
        (evaluator.assert_can_use_coach, evaluator.PAYWALL_COACH),
        (evaluator.assert_can_see_full_issues, evaluator.PAYWALL_FULL_RESULTS),
        (evaluator.assert_can_rescan, evaluator.PAYWALL_RESCAN),
    ])
    def test_paid_only_guards_deny_trial(self, guard, code):
        """Test paid-only capabilities during an active trial."""
        sub = trialing((NOW + timedelta(days=1)).isoformat())

        with pytest.raises(PaywallError) as exc_info:
            guard(sub, now=NOW)

        assert exc_info.value.code == code

    def test_guards_pass_for_paid_plan(self):
        """Test every guard allows a paid subscription."""
        sub = SubscriptionRecord(status="active", plan="starter")

        for capability in Capability:
            result = evaluator.assert_capability(sub, capability, now=NOW)
            assert result.allows(capability) is True

    def test_guard_accepts_capability_string(self):
        """Test capability given by name."""
        sub = SubscriptionRecord(status="active", plan="pro")

        assert evaluator.assert_capability(sub, "rescan", now=NOW).can_rescan is True


class TestStartTrial:
    """Test cases for start_trial()."""

    def test_default_trial_window(self):
        """Test a three day trial."""
        record = evaluator.start_trial(now=NOW)

        assert record.status == "trialing"
        assert record.plan == "free"
        assert record.advice_consumed is False
        assert record.source == "manual"
        assert record.trial_start == NOW
        assert record.trial_end == NOW + timedelta(days=3)

    def test_new_trial_can_scan(self):
        """Test that a fresh trial unlocks the single scan."""
        record = evaluator.start_trial(now=NOW, days=5)

        result = evaluator.evaluate(record, now=NOW + timedelta(days=4))

        assert result.can_scan is True
        assert result.trial_ends_at == NOW + timedelta(days=5)

    def test_invalid_days(self):
        """Test that a trial must last at least a day."""
        with pytest.raises(ValueError):
            evaluator.start_trial(now=NOW, days=0)
