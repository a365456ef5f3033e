"""
Exception hierarchy for aesync.

Every failure surfaced by the sync engine derives from ``AeSyncError`` so that
stream consumers can tell engine errors apart from programming errors.
"""

from __future__ import annotations


class AeSyncError(Exception):
    """Base exception for aesync errors."""

    pass


class NetworkFailure(AeSyncError):
    """A chain node request failed or returned an unusable payload."""

    pass


class InsufficientBalance(AeSyncError):
    """The account cannot cover the amount (and fee) of a spend."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient balance: need {required}, have {available}")


class OperationNotImplemented(AeSyncError, NotImplementedError):
    """The requested operation is not supported for this chain."""

    pass


class DeviceCommunicationFailure(AeSyncError):
    """The hardware device failed to derive an address or sign a transaction."""

    pass


class ConfigError(AeSyncError):
    """The configuration file could not be loaded."""

    pass
