"""
Run parameters and execution profile schema.

Parameters come from the execution profile (JSON) and from command line
overrides. They are read-only for the duration of a run: every lookup takes a
default so a missing key never yields an undefined value.

Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved.
"""

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional, Union
import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from csbench.errors import ProfileException

Scalar = Union[str, int, float, bool]

# Delimiter used by --parameters, e.g. "Port=6379,,,Username=memcached"
PARAMETER_DELIMITER = ",,,"


class RunParameters(Mapping):
    """
    Immutable, case-insensitive mapping of parameter name -> scalar value.
    """

    def __init__(self, values: Optional[Dict[str, Scalar]] = None):
        self._values = MappingProxyType({str(k).lower(): v for k, v in (values or {}).items()})
        self._names = MappingProxyType({str(k).lower(): str(k) for k in (values or {})})

    def __getitem__(self, name: str) -> Scalar:
        return self._values[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RunParameters({dict(self.items())!r})"

    def get_value(self, name: str, default: Any = None) -> Any:
        """Value for name, or default when the parameter is not defined."""
        return self._values.get(name.lower(), default)

    def get_str(self, name: str, default: str = "") -> str:
        value = self.get_value(name)
        return default if value is None else str(value)

    def get_int(self, name: str, default: int = 0) -> int:
        value = self.get_value(name)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Parameter '{name}' must be an integer, got '{value}'")

    def get_float(self, name: str, default: float = 0.0) -> float:
        value = self.get_value(name)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Parameter '{name}' must be a number, got '{value}'")

    def get_bool(self, name: str, default: bool = False) -> bool:
        value = self.get_value(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ('true', '1', 'yes'):
            return True
        if text in ('false', '0', 'no'):
            return False
        raise ValueError(f"Parameter '{name}' must be a boolean, got '{value}'")

    def merged(self, overrides: Mapping) -> "RunParameters":
        """New RunParameters with overrides applied on top of these values."""
        values = dict(self.items())
        for key, value in overrides.items():
            existing = [k for k in values if k.lower() == str(key).lower()]
            for k in existing:
                del values[k]
            values[key] = value
        return RunParameters(values)


class ProfileConfig(BaseModel):
    """Execution profile file: {"description": ..., "parameters": {...}}"""

    model_config = ConfigDict(frozen=True)

    description: Optional[str] = None
    parameters: Dict[str, Scalar] = Field(default_factory=dict)

    @field_validator('parameters')
    @classmethod
    def validate_parameter_names(cls, v: Dict[str, Scalar]) -> Dict[str, Scalar]:
        lowered = [k.lower() for k in v]
        if len(lowered) != len(set(lowered)):
            raise ValueError('parameter names must be unique (case-insensitive)')
        for key in v:
            if not key.strip():
                raise ValueError('parameter names cannot be blank')
        return v

    def to_parameters(self) -> RunParameters:
        return RunParameters(self.parameters)


def parse_parameter_overrides(text: Optional[str]) -> Dict[str, str]:
    """
    Parse a command line parameter string.

    Example:
        parse_parameter_overrides("Port=6379,,,Username=memcached")
        -> {"Port": "6379", "Username": "memcached"}
    """
    overrides = {}
    if not text:
        return overrides
    for pair in text.split(PARAMETER_DELIMITER):
        if not pair.strip():
            continue
        if '=' not in pair:
            raise ProfileException(f"Invalid parameter '{pair}'. Expected format is 'Name=Value'.")
        key, value = pair.split('=', 1)
        if not key.strip():
            raise ProfileException(f"Invalid parameter '{pair}'. Parameter name cannot be blank.")
        overrides[key.strip()] = value.strip()
    return overrides


def load_profile(profile_file: Union[str, Path]) -> ProfileConfig:
    """Load and validate an execution profile JSON file."""
    try:
        with open(profile_file) as f:
            data = json.load(f)
        return ProfileConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ProfileException(f"Invalid execution profile '{profile_file}': {e}")
