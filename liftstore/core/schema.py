"""Versioning and migration of persisted histories."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from packaging import version

# Current format version
CURRENT_VERSION = "1.1"

# Minimum supported version for loading
MIN_SUPPORTED_VERSION = "1.0"

# Version history
VERSION_HISTORY = {
    "1.0": "Initial history format",
    "1.1": "Added per-action timestamps",
}

# Timestamp given to actions exported before 1.1
LEGACY_TIMESTAMP = "1970-01-01T00:00:00+00:00"


class SchemaVersionError(Exception):
    """Raised when a persisted history's version is incompatible."""

    def __init__(
        self, found_version: str, required_version: str, message: str = ""
    ):
        self.found_version = found_version
        self.required_version = required_version
        super().__init__(
            message
            or f"History format version {found_version} is incompatible. Required: >={required_version}"
        )


Migration = Callable[[Dict[str, Any]], Dict[str, Any]]


class SchemaMigrator:
    """Upgrades exported histories one format version at a time.

    Each registered step converts a dict exported by ``from_version`` into
    the shape of ``to_version``; ``migrate`` chains steps until the target
    is reached.
    """

    _steps: Dict[str, Tuple[str, Migration]] = {}

    @classmethod
    def register(cls, from_version: str, to_version: str):
        """Decorator registering the step from ``from_version``."""

        def decorator(func: Migration) -> Migration:
            cls._steps[from_version] = (to_version, func)
            return func

        return decorator

    @classmethod
    def migrate(
        cls, data: Dict[str, Any], target_version: str = CURRENT_VERSION
    ) -> Dict[str, Any]:
        """Return ``data`` upgraded to ``target_version``.

        The input is never modified. Data already at or past the target is
        returned as is.
        """
        result = data
        target = version.parse(target_version)

        for from_v, to_v in cls.steps_from(_version_of(data)):
            if version.parse(to_v) > target:
                break
            _, step = cls._steps[from_v]
            result = step(result)
            result["liftstore"] = to_v

        return result

    @classmethod
    def steps_from(cls, from_version: str) -> List[Tuple[str, str]]:
        """Ordered ``(from, to)`` pairs leading up from ``from_version``."""
        steps = []
        current = from_version
        while current in cls._steps:
            to_v = cls._steps[current][0]
            steps.append((current, to_v))
            current = to_v
        return steps

    @classmethod
    def get_registered_migrations(cls) -> List[str]:
        return [f"{f}->{t}" for f, (t, _) in cls._steps.items()]


def _version_of(data: Dict[str, Any]) -> str:
    # Exports written before versioning carry no key.
    return str(data.get("liftstore", MIN_SUPPORTED_VERSION))


def validate_version(data: Dict[str, Any]) -> None:
    """Validate that the format version is supported.

    Args:
        data: Exported history with a 'liftstore' version key.

    Raises:
        SchemaVersionError: If the version is below MIN_SUPPORTED_VERSION
            or newer than CURRENT_VERSION.
    """
    found = _version_of(data)

    try:
        parsed = version.parse(found)
    except version.InvalidVersion:
        raise SchemaVersionError(found, MIN_SUPPORTED_VERSION, f"Invalid history format version: {found!r}")

    if parsed < version.parse(MIN_SUPPORTED_VERSION):
        raise SchemaVersionError(
            found,
            MIN_SUPPORTED_VERSION,
            f"History format version {found} is too old. Minimum supported: {MIN_SUPPORTED_VERSION}",
        )
    if parsed > version.parse(CURRENT_VERSION):
        raise SchemaVersionError(
            found,
            CURRENT_VERSION,
            f"History format version {found} is newer than this release supports ({CURRENT_VERSION})",
        )


def get_version_info() -> Dict[str, Any]:
    """Get information about format versions."""
    return {
        "current": CURRENT_VERSION,
        "minimum_supported": MIN_SUPPORTED_VERSION,
        "history": VERSION_HISTORY,
    }


@SchemaMigrator.register("1.0", "1.1")
def _migrate_1_0_to_1_1(data: Dict) -> Dict:
    """Migrate from 1.0 to 1.1 - actions gain a timestamp."""
    result = data.copy()
    history = dict(result.get("history") or {})
    actions = history.get("actionsById") or {}
    if isinstance(actions, dict):
        history["actionsById"] = {
            key: {"timestamp": LEGACY_TIMESTAMP, **record} if isinstance(record, dict) else record
            for key, record in actions.items()
        }
    result["history"] = history
    return result
