# src/lumina/errors.py

from __future__ import annotations


class LuminaError(Exception):
    """Base class for errors raised by the planner core."""


class StorageFailure(LuminaError):
    """A key-value read or write failed (quota, locked/corrupt database, bad JSON)."""


class DuplicateUserError(LuminaError):
    """Registration attempted with an email that already has an account."""


class BackupFormatError(LuminaError):
    """Backup payload is not JSON or does not have the expected shape."""


class PlanRequiredError(LuminaError):
    """Feature is reserved for paid plans (Standard/Pro)."""
