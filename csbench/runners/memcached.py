"""
Memcached / Memtier client-server benchmark executor.

The server role runs memcached, the client role runs memtier_benchmark against
it. Both roles share the same lifecycle: validate the platform, resolve the
username, check the local node's layout entry and resolve the server API
endpoint, then run the role specific command lines with elevated privileges.

Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
import asyncio
import logging
import os
import socket

from csbench.errors import ErrorReason, ProfileException
from csbench.lib import layout_lib
from csbench.lib.api_client import ApiClientManager
from csbench.lib.linux_utils import HostSystem, PlatformID
from csbench.lib.process_lib import (
    DEFAULT_SUCCESS_CODES,
    ProcessManager,
    accepted_exit_codes,
    throw_if_errored,
)
from csbench.lib.utils_lib import log_event
from csbench.lib.verify_lib import validate_platform_support
from csbench.runners._base_runner import ExecutorComponent
from csbench.schema.layout import ClientRole
from csbench.schema.parameters import RunParameters

log = logging.getLogger(__name__)

# memtier_benchmark exits with 130 when it is interrupted while writing to
# standard output (e.g. Ctrl-C). It is accepted for every command of this workload.
ALWAYS_ACCEPTED_EXIT_CODES = frozenset({130})

SUCCESS_EXIT_CODES = accepted_exit_codes(DEFAULT_SUCCESS_CODES, ALWAYS_ACCEPTED_EXIT_CODES)

SUPPORTED_ROLES = [ClientRole.CLIENT, ClientRole.SERVER]

DEFAULT_MEMTIER_COMMAND_LINE = (
    '--threads=4 --clients=16 --ratio=1:9 --data-size=32 --pipeline=32 '
    '--key-minimum=1 --key-maximum=10000000 --key-pattern=R:R --run-count=1 '
    '--test-time=180 --print-percentiles=50,90,95,99,99.9 --random-data'
)

# Parameter name -> default used when the parameter is not defined
PARAMETER_DEFAULTS = {
    'Username': '',
    'Role': ClientRole.CLIENT,
    'PackagePath': '',
    'Port': 6379,
    'Protocol': 'memcache_text',
    'ServerThreadCount': 4,
    'ServerMemoryCacheSizeInMB': 1024,
    'ServerMaxConnections': 16384,
    'ServerArguments': '',
    'CommandLine': DEFAULT_MEMTIER_COMMAND_LINE,
    'ServerHeartbeatTimeout': 300,
    'PollingInterval': 2,
}

INTEGER_PARAMETERS = ('Port', 'ServerThreadCount', 'ServerMemoryCacheSizeInMB', 'ServerMaxConnections')
NUMBER_PARAMETERS = ('ServerHeartbeatTimeout', 'PollingInterval')


class WorkloadVariant(ABC):
    """Role specific part of the workload: the command lines each role runs."""

    role: str = ''

    @abstractmethod
    async def execute(self, executor: "MemcachedExecutor", cancellation: asyncio.Event) -> None:
        pass


class MemcachedServerWorkload(WorkloadVariant):
    """Runs the memcached server until it exits or the run is cancelled."""

    role = ClientRole.SERVER

    def command_arguments(self, executor: "MemcachedExecutor") -> str:
        p = executor.parameters
        arguments = (
            f"-p {p.get_int('Port', PARAMETER_DEFAULTS['Port'])} "
            f"-t {p.get_int('ServerThreadCount', PARAMETER_DEFAULTS['ServerThreadCount'])} "
            f"-m {p.get_int('ServerMemoryCacheSizeInMB', PARAMETER_DEFAULTS['ServerMemoryCacheSizeInMB'])} "
            f"-c {p.get_int('ServerMaxConnections', PARAMETER_DEFAULTS['ServerMaxConnections'])} "
            f"-u {executor.username}"
        )
        extra = p.get_str('ServerArguments', PARAMETER_DEFAULTS['ServerArguments']).strip()
        return f'{arguments} {extra}' if extra else arguments

    async def execute(self, executor, cancellation):
        await executor.execute_command(
            executor.package_command('memcached'),
            self.command_arguments(executor),
            executor.working_dir,
            cancellation,
        )


class MemtierClientWorkload(WorkloadVariant):
    """Runs memtier_benchmark against the server resolved for the run."""

    role = ClientRole.CLIENT

    def command_arguments(self, executor: "MemcachedExecutor") -> str:
        p = executor.parameters
        arguments = (
            f"--server={executor.server_endpoint.address} "
            f"--port={p.get_int('Port', PARAMETER_DEFAULTS['Port'])} "
            f"--protocol={p.get_str('Protocol', PARAMETER_DEFAULTS['Protocol'])}"
        )
        command_line = p.get_str('CommandLine', PARAMETER_DEFAULTS['CommandLine']).strip()
        return f'{arguments} {command_line}' if command_line else arguments

    async def execute(self, executor, cancellation):
        endpoint = executor.server_endpoint
        if not endpoint.is_loopback:
            p = executor.parameters
            online = await endpoint.client.poll_for_heartbeat(
                timeout=p.get_float('ServerHeartbeatTimeout', PARAMETER_DEFAULTS['ServerHeartbeatTimeout']),
                cancellation=cancellation,
                interval=p.get_float('PollingInterval', PARAMETER_DEFAULTS['PollingInterval']),
            )
            if not online:
                return

        await executor.execute_command(
            executor.package_command('memtier_benchmark'),
            self.command_arguments(executor),
            executor.working_dir,
            cancellation,
            success_codes=SUCCESS_EXIT_CODES,
        )


WORKLOAD_VARIANTS = {
    ClientRole.CLIENT.lower(): MemtierClientWorkload,
    ClientRole.SERVER.lower(): MemcachedServerWorkload,
}


def select_workload(role: str) -> WorkloadVariant:
    """Workload variant for a role (case-insensitive)."""
    try:
        return WORKLOAD_VARIANTS[(role or '').strip().lower()]()
    except KeyError:
        raise ProfileException(
            f"The role '{role}' is not supported. Supported roles include: {', '.join(SUPPORTED_ROLES)}",
            ErrorReason.ROLE_NOT_SUPPORTED,
        )


class MemcachedExecutor(ExecutorComponent):
    """
    Executor for the Memcached/Memtier client-server workload.

    Collaborators are passed in explicitly so each one can be replaced in tests:
    host (platform, distro, logged in user), process_manager (elevated
    processes), api_client_manager (server API clients) and layout (the
    environment layout, None for single-node runs).
    """

    def __init__(
        self,
        parameters: Optional[RunParameters] = None,
        host: Optional[HostSystem] = None,
        process_manager: Optional[ProcessManager] = None,
        api_client_manager: Optional[ApiClientManager] = None,
        layout=None,
        agent_id: Optional[str] = None,
    ):
        super().__init__(parameters)
        self.host = host or HostSystem()
        self.process_manager = process_manager or ProcessManager()
        self.api_client_manager = api_client_manager or ApiClientManager()
        self.layout = layout
        self.agent_id = agent_id or socket.gethostname()
        self.supported_roles = list(SUPPORTED_ROLES)
        self.role = self.parameters.get_str('Role', PARAMETER_DEFAULTS['Role'])
        self.server_endpoint = None
        self.workload = None

    @property
    def username(self) -> str:
        """Username parameter, or the host's logged in user when blank."""
        username = self.parameters.get_str('Username', PARAMETER_DEFAULTS['Username'])
        if not username.strip():
            username = self.host.get_logged_in_user()
        return username

    @property
    def platform(self):
        return self.host.platform

    @property
    def working_dir(self) -> str:
        return self.parameters.get_str('PackagePath', PARAMETER_DEFAULTS['PackagePath']) or os.getcwd()

    def package_command(self, name: str) -> str:
        package_path = self.parameters.get_str('PackagePath', PARAMETER_DEFAULTS['PackagePath'])
        return os.path.join(package_path, name) if package_path else name

    def is_multi_role_layout(self) -> bool:
        return layout_lib.is_multi_role_layout(self.layout)

    async def initialize(self, cancellation):
        self.validate_platform_support(cancellation)
        if not cancellation.is_set():
            log.debug(f"Username = '{self.username}'")
        self.evaluate_parameters(cancellation)

        if self.is_multi_role_layout():
            instance = layout_lib.validate_local_instance(self.layout, self.agent_id, self.supported_roles)
            self.role = instance.role

        self.workload = select_workload(self.role)
        self.server_endpoint = layout_lib.resolve_api_endpoint(
            self.layout,
            self.api_client_manager,
            self.register_exit_notification,
            f'{self.type_name}.ExitNotification',
        )

    def validate_platform_support(self, cancellation):
        if cancellation.is_set():
            return
        distribution_info = self.host.get_linux_distribution() if self.platform == PlatformID.UNIX else None
        validate_platform_support(self.platform, distribution_info, self.host.platform_architecture_name)

    def evaluate_parameters(self, cancellation):
        """Fail before any process starts when a numeric parameter is malformed."""
        if cancellation.is_set():
            return
        try:
            for name in INTEGER_PARAMETERS:
                if self.parameters.get_int(name, PARAMETER_DEFAULTS[name]) <= 0:
                    raise ValueError(f"Parameter '{name}' must be greater than zero")
            for name in NUMBER_PARAMETERS:
                if self.parameters.get_float(name, PARAMETER_DEFAULTS[name]) < 0:
                    raise ValueError(f"Parameter '{name}' cannot be negative")
        except ValueError as e:
            raise ProfileException(str(e))

    async def execute_workload(self, cancellation):
        await self.workload.execute(self, cancellation)

    async def execute_command(
        self,
        command: str,
        arguments: str,
        working_dir: str,
        cancellation: asyncio.Event,
        success_codes: Optional[Iterable[int]] = None,
    ) -> None:
        """
        Run a command elevated and fail the run when it exits unsuccessfully.

        Exit codes in success_codes (default: DEFAULT_SUCCESS_CODES) and 130 are
        success. Nothing runs when cancellation is already set, and no exit code
        is evaluated when cancellation is set while the command runs.

        Raises:
            WorkloadException: WORKLOAD_FAILED, carrying the process outcome
        """
        if cancellation.is_set():
            return

        log.debug(f"Executing process '{command}' '{arguments}' at directory '{working_dir}'.")
        context = {
            'packagePath': working_dir,
            'command': command,
            'commandArguments': arguments,
        }

        with log_event(f'{self.type_name}.ExecuteProcess', context, log):
            process = self.process_manager.create_elevated_process(self.platform, command, arguments, working_dir)
            self.cleanup_tasks.append(process.safe_kill)
            await process.start_and_wait(cancellation)

            if not cancellation.is_set():
                outcome = process.outcome()
                context.update(outcome.summary())
                self.log_process_details(outcome)
                throw_if_errored(process, accepted_exit_codes(success_codes, ALWAYS_ACCEPTED_EXIT_CODES))

    def log_process_details(self, outcome):
        log.info(f'Process exited with code {outcome.exit_code} after {outcome.elapsed:.2f} seconds')
        if outcome.stdout:
            log.debug(f'stdout:\n{outcome.stdout}')
        if outcome.stderr:
            log.debug(f'stderr:\n{outcome.stderr}')
