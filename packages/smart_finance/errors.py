"""User-actionable error taxonomy for the normalization pipeline.

Every error carries an HTTP ``status_code`` and a message that can be shown to
the user as-is. Network and service failures are translated into one of these
at the boundary where they occur (OpenAI client, Monobank client); callers
above that boundary only ever see ``FinanceError`` subclasses.
"""

from __future__ import annotations


class FinanceError(Exception):
    """Base class for errors surfaced to the user."""

    status_code: int = 500
    default_message: str = "Something went wrong. Try again later."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputMissing(FinanceError):
    status_code = 400
    default_message = "Nothing to process: provide the text or token and try again."


class InvalidAmount(FinanceError):
    status_code = 400
    default_message = "Enter a positive number."


class UpstreamAuthFailure(FinanceError):
    status_code = 401
    default_message = "Credentials were rejected. Check the API key or bank token in settings."


class NoAccountsFound(FinanceError):
    status_code = 404
    default_message = "No Monobank accounts found for this token."


class TransactionNotFound(FinanceError):
    status_code = 404
    default_message = "That transaction no longer exists. Refresh the list and try again."


class MalformedResponse(FinanceError):
    status_code = 422
    default_message = (
        "Could not recognize a transaction. Try rephrasing, e.g. 'Misha 200 dollars'."
    )


class UpstreamRateLimited(FinanceError):
    status_code = 429
    default_message = "Too many requests. Wait a minute and try again."


class UpstreamUnavailable(FinanceError):
    status_code = 502
    default_message = "The service is unreachable right now. Check the connection and retry."


__all__ = [
    "FinanceError",
    "InputMissing",
    "InvalidAmount",
    "MalformedResponse",
    "NoAccountsFound",
    "TransactionNotFound",
    "UpstreamAuthFailure",
    "UpstreamRateLimited",
    "UpstreamUnavailable",
]
