"""
Entitlements Service package for the FyxxLabs access layer.

This package decides what a store owner may do from their subscription row,
and when the upgrade paywall may be shown. It provides:

- app.main: API surface for evaluations, capability checks, paywall and health.
- app.entitlements: Subscription model, evaluator, quotas and paywall guards.
- app.paywall: Paywall cooldown and daily presentation counter rules.

Guidelines:
- The service is stateless; records arrive in requests and updated records
  are returned to the caller to persist.
- Keep evaluation deterministic for a given (record, now) and observable
  (metrics + logs).
"""
