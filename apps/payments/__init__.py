"""
Payments App

Azampay mobile-money payments for subscription plans and the
reconciliation that activates a plan once the payment succeeds.
"""
