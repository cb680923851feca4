"""
Subscription errors.

Views map PlanNotFound / SubscriptionNotFound to 404 and every other
SubscriptionError to 400.
"""


class SubscriptionError(Exception):
    """Base exception for subscription lifecycle errors"""

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class PlanNotFound(SubscriptionError):
    def __init__(self, message: str = 'Plan not found'):
        super().__init__(message, code='plan_not_found')


class SubscriptionNotFound(SubscriptionError):
    def __init__(self, message: str = 'Subscription not found'):
        super().__init__(message, code='subscription_not_found')


class InvalidTransition(SubscriptionError):
    """The subscription's current status does not allow the operation"""

    def __init__(self, message: str):
        super().__init__(message, code='invalid_transition')


class SubscriptionExists(SubscriptionError):
    def __init__(self, message: str = 'Business already has a subscription'):
        super().__init__(message, code='subscription_exists')
