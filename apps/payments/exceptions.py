"""
Payment errors raised before a request reaches Azampay
"""


class PaymentError(Exception):
    """Base exception for payment requests"""

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class InvalidPaymentRequest(PaymentError):
    """Bad plan or provider; the view answers 400"""

    def __init__(self, message: str, code: str = 'invalid_request'):
        super().__init__(message, code=code)
