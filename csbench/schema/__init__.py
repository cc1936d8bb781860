"""csbench Pydantic schemas for run parameters and environment layouts."""

from .layout import (
    ClientInstance,
    ClientRole,
    EnvironmentLayout,
    load_layout,
)
from .parameters import (
    ProfileConfig,
    RunParameters,
    load_profile,
    parse_parameter_overrides,
)

__all__ = [
    'ClientInstance',
    'ClientRole',
    'EnvironmentLayout',
    'load_layout',
    'ProfileConfig',
    'RunParameters',
    'load_profile',
    'parse_parameter_overrides',
]
