"""
Domain errors raised by the service layer.

Each error carries the HTTP status the API answers with; the handler in
``classroom_exchange.main`` renders them as ``{"detail": message}``.
"""


class ExchangeError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ExchangeError):
    status_code = 400


class DomainRuleViolation(ExchangeError):
    """Insufficient cash or holdings, trading closed, duplicates."""

    status_code = 400


class AuthenticationFailed(ExchangeError):
    status_code = 401


class PermissionDenied(ExchangeError):
    status_code = 403


class NotFound(ExchangeError):
    status_code = 404
