"""
Typed exception hierarchy for the register ledger.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RegisterError:

    RegisterError (base)
    |
    +-- SourceError
    |   +-- SourceFetchError
    |
    +-- SyncError
    |   +-- SyncAlreadyRunningError
    |   +-- SyncTimeoutError
    |   +-- InvalidSyncTransitionError
    |   +-- SyncRunNotFoundError
    |
    +-- ConfigError
        +-- InvalidOverrideError
        +-- SettingsError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category  | Code                        | When Raised
----------|-----------------------------|-----------------------------------------
Source    | SOURCE_FETCH_FAILED         | HTTP / transport failure talking to a
          |                             | register API (fatal to a sync run)
----------|-----------------------------|-----------------------------------------
Sync      | SYNC_ALREADY_RUNNING        | Another live run holds the run lock
          | SYNC_TIMEOUT                | Run exceeded its deadline
          | INVALID_SYNC_TRANSITION     | Run status moved out of order
          | SYNC_RUN_NOT_FOUND          | Run id doesn't exist
----------|-----------------------------|-----------------------------------------
Config    | INVALID_OVERRIDE            | Override entry missing pattern / bad type
          | INVALID_SETTINGS            | Settings file has an unusable value

===============================================================================
HANDLING PATTERNS
===============================================================================

Malformed source data (amounts, dates, hours) is NOT an error and never
reaches this module: parsers resolve it to None. Per-batch persistence
failures are collected as strings on the run, not raised. Only the classes
below cross a service boundary:

    try:
        result = orchestrator.run()
    except SyncAlreadyRunningError as e:
        log.info("skipping, run %s still active", e.active_run_id)
    except SourceFetchError as e:
        alert(e.code, e.url, e.status_code)
"""


class RegisterError(Exception):
    """
    Base exception for all register ledger errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "REGISTER_ERROR"


# Source-related exceptions


class SourceError(RegisterError):
    """Base exception for external register source errors."""

    code: str = "SOURCE_ERROR"


class SourceFetchError(SourceError):
    """A request to an external register API failed."""

    code: str = "SOURCE_FETCH_FAILED"

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        status = f" {status_code}" if status_code is not None else ""
        super().__init__(f"Register API error{status}: {reason} ({url})")


# Sync-related exceptions


class SyncError(RegisterError):
    """Base exception for sync run errors."""

    code: str = "SYNC_ERROR"


class SyncAlreadyRunningError(SyncError):
    """Another non-terminal sync run is active against the same store."""

    code: str = "SYNC_ALREADY_RUNNING"

    def __init__(self, active_run_id: str, status: str):
        self.active_run_id = active_run_id
        self.status = status
        super().__init__(
            f"Sync run {active_run_id} is still active (status={status})"
        )


class SyncTimeoutError(SyncError):
    """The run exceeded its deadline."""

    code: str = "SYNC_TIMEOUT"

    def __init__(self, run_id: str, stage: str, deadline_seconds: float):
        self.run_id = run_id
        self.stage = stage
        self.deadline_seconds = deadline_seconds
        super().__init__(
            f"Sync run {run_id} exceeded {deadline_seconds}s deadline "
            f"during {stage}"
        )


class InvalidSyncTransitionError(SyncError):
    """Run status transition is not allowed by the run lifecycle."""

    code: str = "INVALID_SYNC_TRANSITION"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move sync run from {current} to {target}")


class SyncRunNotFoundError(SyncError):
    """Sync run with given ID was not found."""

    code: str = "SYNC_RUN_NOT_FOUND"

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Sync run not found: {run_id}")


# Configuration exceptions


class ConfigError(RegisterError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidOverrideError(ConfigError):
    """A payer override entry is malformed."""

    code: str = "INVALID_OVERRIDE"

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid payer override #{index}: {reason}")


class SettingsError(ConfigError):
    """A settings value cannot be used."""

    code: str = "INVALID_SETTINGS"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid setting {key!r}: {reason}")
