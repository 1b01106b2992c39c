"""Public interface for the ``smart_finance`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    SyncResult,
    build_extractor,
    build_preferences,
    build_repository,
    parse_transaction,
    record_from_text,
    sync_monobank,
)
from .config import PreferencesStore, Settings
from .errors import (
    FinanceError,
    InputMissing,
    InvalidAmount,
    MalformedResponse,
    NoAccountsFound,
    TransactionNotFound,
    UpstreamAuthFailure,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from .models import Currency, ParsedTransaction, Transaction, TransactionType
from .store import Persisted, PersistedLocalOnly, StoreResult, TransactionRepository

__all__ = [
    # API
    "build_extractor",
    "build_preferences",
    "build_repository",
    "parse_transaction",
    "record_from_text",
    "sync_monobank",
    "SyncResult",
    # Config
    "PreferencesStore",
    "Settings",
    # Models / types
    "Currency",
    "ParsedTransaction",
    "Transaction",
    "TransactionType",
    "Persisted",
    "PersistedLocalOnly",
    "StoreResult",
    "TransactionRepository",
    # Errors
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
