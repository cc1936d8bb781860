'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

from typing import Any, Dict, Optional
import asyncio
import ipaddress
import logging
import os
import time

import httpx

from csbench.errors import DependencyException, ErrorReason

log = logging.getLogger(__name__)

DEFAULT_API_PORT = 4500
LOOPBACK_ADDRESS = "127.0.0.1"


class InstructionsType:
    """Instruction types understood by the API."""

    CLIENT_SERVER_RESET = "ClientServerReset"
    CLIENT_SERVER_START_EXECUTION = "ClientServerStartExecution"


def get_api_port() -> int:
    """API port from CSBENCH_API_PORT, defaulting to 4500."""
    value = os.getenv("CSBENCH_API_PORT", str(DEFAULT_API_PORT))
    try:
        return int(value)
    except ValueError:
        log.warning(f"Invalid CSBENCH_API_PORT '{value}', using {DEFAULT_API_PORT}")
        return DEFAULT_API_PORT


class ApiClient:
    """
    HTTP client bound to the csbench API of a single node.

    Nodes of a client/server run coordinate only through this API: the client
    polls the server for a heartbeat before starting the benchmark and sends
    reset instructions to the server when it exits.
    """

    def __init__(self, address: str, port: Optional[int] = None, timeout: float = 10.0):
        self.address = address
        self.port = port or get_api_port()
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        host = self.address
        try:
            if ipaddress.ip_address(host).version == 6:
                host = f"[{host}]"
        except ValueError:
            pass
        return f"http://{host}:{self.port}"

    def __repr__(self) -> str:
        return f"ApiClient({self.base_url})"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            return await client.request(method, path, **kwargs)

    async def get_heartbeat(self) -> bool:
        """True when the API answers the heartbeat request."""
        try:
            response = await self._request("GET", "/api/heartbeat")
            return response.status_code == 200
        except httpx.HTTPError as e:
            log.debug(f"Heartbeat to {self.base_url} failed: {e}")
            return False

    async def get_state(self, state_id: str) -> Optional[Dict[str, Any]]:
        """State object stored under state_id, or None when not defined."""
        try:
            response = await self._request("GET", f"/api/state/{state_id}")
        except httpx.HTTPError as e:
            raise DependencyException(
                f"Unable to read state '{state_id}' from {self.base_url}: {e}",
                ErrorReason.API_REQUEST_FAILED,
            )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise DependencyException(
                f"Unable to read state '{state_id}' from {self.base_url}: HTTP {response.status_code}",
                ErrorReason.API_REQUEST_FAILED,
            )
        return response.json()

    async def send_instructions(self, instructions_type: str, parameters: Optional[Dict[str, Any]] = None) -> bool:
        """Post instructions to the node. Returns True when accepted."""
        body = {"type": instructions_type, "parameters": parameters or {}}
        response = await self._request("POST", "/api/instructions", json=body)
        if response.status_code not in (200, 201, 202, 204):
            log.warning(f"{self.base_url} returned {response.status_code} for instructions {instructions_type}")
            return False
        return True

    async def poll_for_heartbeat(self, timeout: float, cancellation: asyncio.Event, interval: float = 1.0) -> bool:
        """
        Wait until the node answers a heartbeat.

        Returns True once the heartbeat succeeds, False when cancellation is
        set first.

        Raises:
            DependencyException: the node did not answer within timeout seconds
        """
        deadline = time.monotonic() + timeout
        while not cancellation.is_set():
            if await self.get_heartbeat():
                log.info(f"Heartbeat confirmed for {self.base_url}")
                return True
            if time.monotonic() >= deadline:
                raise DependencyException(
                    f"API at {self.base_url} did not respond to heartbeat within {timeout} seconds",
                    ErrorReason.API_REQUEST_FAILED,
                )
            try:
                await asyncio.wait_for(cancellation.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        return False


class ApiClientManager:
    """Creates API clients and reuses them per address."""

    def __init__(self, port: Optional[int] = None):
        self.port = port
        self._clients: Dict[str, ApiClient] = {}

    def get_or_create_client(self, address: str) -> ApiClient:
        key = address.lower()
        if key not in self._clients:
            self._clients[key] = ApiClient(address, port=self.port)
        return self._clients[key]


async def send_exit_notification(event_name: str, client: ApiClient, timeout: float = 5.0) -> None:
    """
    Tell a peer that this run has ended.

    Best-effort delivery: short timeout, failures are logged and never raised.
    """
    try:
        accepted = await asyncio.wait_for(
            client.send_instructions(InstructionsType.CLIENT_SERVER_RESET, {"eventName": event_name}),
            timeout=timeout,
        )
        if accepted:
            log.info(f"Sent exit notification {event_name} to {client.base_url}")
    except asyncio.TimeoutError:
        log.warning(f"Exit notification {event_name} to {client.base_url} timed out")
    except httpx.ConnectError:
        log.warning(f"Exit notification {event_name}: {client.base_url} unreachable")
    except Exception as e:
        log.warning(f"Exit notification {event_name} to {client.base_url} failed: {e}")
