"""Instrumentation options."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .core.engine import UNBOUNDED, validate_max_age


@dataclass(frozen=True)
class InstrumentOptions:
    """Options for instrumenting a store.

    Attributes:
        max_age: Maximum number of staged history entries (init action
            included, at least 2). When reached, the oldest action is
            committed automatically and can no longer be toggled, swept
            or replayed.
        state_type: Expected type of the application state, checked when
            the devtools store is read through its handle.
    """
    max_age: int = UNBOUNDED
    state_type: Optional[type] = None

    def __post_init__(self):
        validate_max_age(self.max_age)
        if self.state_type is not None and not isinstance(self.state_type, type):
            raise TypeError(f"state_type must be a type, got {self.state_type!r}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InstrumentOptions":
        """Create options from a plain mapping.

        Only ``max_age`` is read; a missing or null value means unbounded.

        Raises:
            ValueError: On unknown keys or an invalid max_age.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Expected dict, got {type(d).__name__}")

        unknown = sorted(set(d) - {"max_age"})
        if unknown:
            raise ValueError(f"Unknown instrument options: {unknown}")

        max_age = d.get("max_age")
        return cls(max_age=UNBOUNDED if max_age is None else max_age)

    @classmethod
    def load(cls, path: Path) -> "InstrumentOptions":
        """Load options from a JSON or YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file cannot be parsed or holds invalid options.
        """
        if not path.exists():
            raise FileNotFoundError(f"Options file not found: {path}")

        content = path.read_text()
        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content) if content.strip() else None
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid file format in {path}: {e}")

        return cls.from_dict(data or {})
