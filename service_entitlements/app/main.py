"""
Entitlements service for the FyxxLabs access layer.
"""

from datetime import timedelta
from typing import Optional

from shared.base_service import BaseService
from shared.errors import PaywallError
from shared.logging import set_user_context

from .entitlements import evaluator
from .entitlements.models import (
    Capability, EvaluateRequest, EntitlementsResponse,
    CheckRequest, CheckResponse, TrialRequest, TrialResponse
)
from .paywall import rules as paywall_rules
from .paywall.models import (
    PaywallProfile, PaywallRequest, PaywallEligibilityResponse, PaywallProfileResponse
)


class EntitlementsService(BaseService):
    """Entitlements service implementation."""

    def __init__(self, **config_overrides):
        super().__init__("entitlements", 8011, **config_overrides)
        self.paywall_cooldown = timedelta(seconds=self.config.paywall_cooldown_seconds)
        self._setup_entitlements_routes()

    def _setup_entitlements_routes(self):
        """Set up entitlements-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "entitlements",
                "message": "FyxxLabs Access Layer - Entitlements Service",
                "version": "1.0.0",
                "capabilities": [c.value for c in Capability]
            }

        @self.app.post("/entitlements/evaluate", response_model=EntitlementsResponse)
        async def evaluate_entitlements(request: EvaluateRequest):
            """Evaluate capability flags and quotas for a subscription."""
            set_user_context(request.user_id)
            subscription = request.subscription.to_record() if request.subscription else None

            with self.metrics.time_operation("entitlement_check_duration_seconds"):
                entitlements = evaluator.evaluate(subscription)
                quotas = evaluator.plan_quotas(subscription)

            self.metrics.increment_counter("entitlement_evaluations_total", tier=quotas.plan)
            self.logger.info(
                "Entitlements evaluated",
                tier=quotas.plan,
                is_paid=entitlements.is_paid,
                is_trial_active=entitlements.is_trial_active,
                can_scan=entitlements.can_scan
            )
            return EntitlementsResponse.from_evaluation(entitlements, quotas)

        @self.app.post("/entitlements/check", response_model=CheckResponse)
        async def check_capability(request: CheckRequest):
            """Check one capability; denials raise a 403 paywall error."""
            set_user_context(request.user_id)
            subscription = request.subscription.to_record() if request.subscription else None

            try:
                evaluator.assert_capability(subscription, request.capability)
            except PaywallError as e:
                profile = request.paywall_profile.to_profile() if request.paywall_profile else None
                e.details["show_paywall"] = self._can_show_paywall(profile)
                self.metrics.increment_counter(
                    "entitlement_checks_total", capability=request.capability.value, decision="deny"
                )
                raise

            self.metrics.increment_counter(
                "entitlement_checks_total", capability=request.capability.value, decision="allow"
            )
            return CheckResponse(allowed=True, capability=request.capability)

        @self.app.post("/paywall/eligibility", response_model=PaywallEligibilityResponse)
        async def paywall_eligibility(request: PaywallRequest):
            """Whether the paywall may be presented now."""
            set_user_context(request.user_id)
            profile = request.paywall_profile.to_profile() if request.paywall_profile else None
            return PaywallEligibilityResponse(can_show_paywall=self._can_show_paywall(profile))

        @self.app.post("/paywall/shown", response_model=PaywallProfileResponse)
        async def paywall_shown(request: PaywallRequest):
            """Compute the paywall-display record after a presentation."""
            set_user_context(request.user_id)
            profile = request.paywall_profile.to_profile() if request.paywall_profile else None
            updated = paywall_rules.record_paywall_shown(profile)

            self.logger.info(
                "Paywall shown",
                day=updated.paywall_show_day,
                count_today=updated.paywall_show_count_today
            )
            return PaywallProfileResponse(
                last_paywall_shown_at=updated.last_paywall_shown_at,
                paywall_show_day=updated.paywall_show_day,
                paywall_show_count_today=updated.paywall_show_count_today
            )

        @self.app.post("/subscriptions/trial", response_model=TrialResponse)
        async def start_trial(request: Optional[TrialRequest] = None):
            """Build the subscription fields for a fresh trial."""
            days = self.config.trial_days
            if request is not None:
                set_user_context(request.user_id)
                if request.days is not None:
                    days = request.days

            record = evaluator.start_trial(days=days)
            self.logger.info("Trial started", trial_end=record.trial_end.isoformat(), days=days)
            return TrialResponse(
                status=record.status,
                plan=record.plan,
                trial_start=record.trial_start,
                trial_end=record.trial_end,
                advice_consumed=record.advice_consumed,
                source=record.source
            )

    def _can_show_paywall(self, profile: Optional[PaywallProfile]) -> bool:
        decision = paywall_rules.can_show_paywall(profile, cooldown=self.paywall_cooldown)
        self.metrics.increment_counter("paywall_decisions_total", decision="show" if decision else "suppress")
        return decision


def create_app(**config_overrides):
    """Create entitlements service application."""
    service = EntitlementsService(**config_overrides)
    return service.app


if __name__ == "__main__":
    service = EntitlementsService()
    service.run()
