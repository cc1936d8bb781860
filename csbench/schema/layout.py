"""
Environment layout schema.

The layout describes every node participating in a client/server run:

    {
      "clients": [
        {"name": "node1", "ipAddress": "10.0.0.2", "role": "Client"},
        {"name": "node2", "ipAddress": "10.0.0.5", "role": "Server"}
      ]
    }

Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved.
"""

from pathlib import Path
from typing import List, Optional, Union
import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from csbench.errors import ErrorReason, ProfileException


class ClientRole:
    """Roles of the participants in a client/server workload."""

    CLIENT = "Client"
    SERVER = "Server"


class ClientInstance(BaseModel):
    """One participant of a multi-node layout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    ip_address: Optional[str] = Field(default=None, alias="ipAddress")
    role: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('client instance name cannot be blank')
        return v.strip()

    def has_role(self, role: str) -> bool:
        return bool(self.role) and self.role.strip().lower() == role.lower()


class EnvironmentLayout(BaseModel):
    """Ordered set of client instances in the environment."""

    model_config = ConfigDict(frozen=True)

    clients: List[ClientInstance] = Field(default_factory=list)

    @field_validator('clients')
    @classmethod
    def validate_unique_names(cls, v: List[ClientInstance]) -> List[ClientInstance]:
        names = [c.name.lower() for c in v]
        if len(names) != len(set(names)):
            raise ValueError('client instance names must be unique')
        return v

    def is_multi_role(self) -> bool:
        """True when more than one distinct role participates in the layout."""
        roles = {c.role.strip().lower() for c in self.clients if c.role and c.role.strip()}
        return len(roles) > 1

    def get_client_instance(self, agent_id: str) -> Optional[ClientInstance]:
        """Instance whose name matches agent_id (case-insensitive), or None."""
        for instance in self.clients:
            if instance.name.lower() == agent_id.lower():
                return instance
        return None

    def get_client_instances(self, role: str) -> List[ClientInstance]:
        """All instances in the given role, in layout order."""
        return [c for c in self.clients if c.has_role(role)]


def load_layout(layout_file: Union[str, Path]) -> EnvironmentLayout:
    """Load and validate an environment layout JSON file."""
    try:
        with open(layout_file) as f:
            data = json.load(f)
        return EnvironmentLayout.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ProfileException(f"Invalid environment layout '{layout_file}': {e}", ErrorReason.LAYOUT_INVALID)
