"""Typed errors raised by the core.

Construction errors (OutOfOrderVersion, ChainCorruption, RuleConflict)
fail the operation immediately.  Per-request outcomes such as
VersionNotFound are converted to ServiceResult errors at the service
boundary so a long-lived process keeps serving other requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from packaging.version import Version


class OrbctlError(Exception):
    """Base exception for orbctl."""

    code = "ORBCTL_ERROR"


class VersionNotFound(OrbctlError):
    """Requested version was never appended to the store."""

    code = "VERSION_NOT_FOUND"

    def __init__(self, version: Version | str) -> None:
        super().__init__(f"Version {version} not found in store")
        self.version = version


class OutOfOrderVersion(OrbctlError):
    """Append attempted with a version not strictly greater than the latest."""

    code = "OUT_OF_ORDER_VERSION"

    def __init__(self, version: Version, latest: Version) -> None:
        super().__init__(f"Cannot append {version}: latest stored version is {latest}")
        self.version = version
        self.latest = latest


class ChainCorruption(OrbctlError):
    """A delta does not start from the version produced by the previous entry."""

    code = "CHAIN_CORRUPTION"


class RuleSetError(OrbctlError):
    """Base for rule-set load-time failures."""

    code = "RULE_SET_ERROR"


class RuleConflict(RuleSetError):
    """Two rules in the same gap target the same scope and parameter."""

    code = "RULE_CONFLICT"


class UnknownGap(RuleSetError):
    """A rule set names a version pair that is not an adjacent gap in history."""

    code = "UNKNOWN_GAP"


class InvalidRule(RuleSetError):
    """A rule record is structurally invalid."""

    code = "INVALID_RULE"


class OrbParseError(OrbctlError):
    """An orb or rule document could not be read or parsed."""

    code = "ORB_PARSE_FAILED"


class UnsupportedDirection(OrbctlError):
    """Migration requested from a newer version to an older one."""

    code = "UNSUPPORTED_DIRECTION"


class ConfigReadError(OrbctlError):
    """A user configuration file could not be read or parsed."""

    code = "CONFIG_READ_FAILED"
