'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

import re
import logging
import ipaddress
from dataclasses import dataclass

from csbench.errors import DependencyException, ErrorReason
from csbench.lib.api_client import LOOPBACK_ADDRESS
from csbench.schema.layout import ClientRole

log = logging.getLogger(__name__)

HOSTNAME_LABEL = re.compile(r'^(?!-)[a-z0-9-]{1,63}(?<!-)$', re.I)


@dataclass(frozen=True)
class ApiEndpoint:
    """Resolved address of the server API and the client bound to it."""

    address: str
    client: object
    is_loopback: bool = False


def is_multi_role_layout(layout):
    return layout is not None and layout.is_multi_role()


def parse_address(address):
    """
    Normalize an IP address or host name.

    Returns the compressed form of an IP address, the lower-cased host name,
    or None when the value is missing or malformed.
    """
    if address is None or not str(address).strip():
        return None
    address = str(address).strip()
    try:
        return str(ipaddress.ip_address(address))
    except ValueError:
        pass
    if len(address) > 253:
        return None
    labels = address.rstrip('.').split('.')
    # All-numeric names are malformed IPv4 addresses, not host names
    if all(label.isdigit() for label in labels):
        return None
    if all(HOSTNAME_LABEL.match(label) for label in labels):
        return address.rstrip('.').lower()
    return None


def validate_local_instance(layout, agent_id, supported_roles):
    """
    Check the local node's own entry in a multi-role layout.

    Parameters:
      layout (EnvironmentLayout): Layout of the run.
      agent_id (str): Name of the local node in the layout.
      supported_roles (list): Roles the workload can run in.

    Returns:
      ClientInstance: The local node's layout entry.

    Raises:
      DependencyException: LAYOUT_INVALID when the node is missing from the layout,
        ADDRESS_RESOLUTION_FAILED when its IP address is missing or malformed,
        ROLE_NOT_SUPPORTED when its role is not one of supported_roles.
    """
    instance = layout.get_client_instance(agent_id)
    if instance is None:
        raise DependencyException(
            f"The environment layout does not contain an instance for the current node '{agent_id}'. "
            f"Layout instances: {', '.join(c.name for c in layout.clients)}",
            ErrorReason.LAYOUT_INVALID,
        )

    if parse_address(instance.ip_address) is None:
        raise DependencyException(
            f"The IP address '{instance.ip_address}' defined in the environment layout for the current "
            f"node '{agent_id}' is missing or not a valid address.",
            ErrorReason.ADDRESS_RESOLUTION_FAILED,
        )

    if not any(instance.has_role(role) for role in supported_roles):
        raise DependencyException(
            f"The role '{instance.role}' defined in the environment layout for the current node "
            f"'{agent_id}' is not supported. Supported roles include: {', '.join(supported_roles)}",
            ErrorReason.ROLE_NOT_SUPPORTED,
        )

    log.info(f'Local instance {instance.name} ({instance.ip_address}) runs in role {instance.role}')
    return instance


def resolve_api_endpoint(layout, api_client_manager, register_exit_notification, event_name):
    """
    Resolve the endpoint of the server API for this run.

    Single-node runs bind to the loopback address without looking at the
    layout instances. Multi-node runs bind to the first instance in the
    Server role and register event_name to be sent to it when the run ends.

    Raises:
      DependencyException: ADDRESS_RESOLUTION_FAILED when there is no server
        instance or its address is missing or malformed.
    """
    if not is_multi_role_layout(layout):
        client = api_client_manager.get_or_create_client(LOOPBACK_ADDRESS)
        return ApiEndpoint(address=LOOPBACK_ADDRESS, client=client, is_loopback=True)

    servers = layout.get_client_instances(ClientRole.SERVER)
    if not servers:
        raise DependencyException(
            f"The environment layout does not define an instance in the '{ClientRole.SERVER}' role. "
            f"Layout instances: {', '.join(f'{c.name} ({c.role})' for c in layout.clients)}",
            ErrorReason.ADDRESS_RESOLUTION_FAILED,
        )

    server = servers[0]
    address = parse_address(server.ip_address)
    if address is None:
        raise DependencyException(
            f"The IP address '{server.ip_address}' of server instance '{server.name}' is missing or not a valid address.",
            ErrorReason.ADDRESS_RESOLUTION_FAILED,
        )

    client = api_client_manager.get_or_create_client(address)
    register_exit_notification(event_name, client)
    log.info(f'Server API endpoint resolved to {address} ({server.name})')
    return ApiEndpoint(address=address, client=client)
