"""
Base executor lifecycle and common data structures.

Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional, Tuple
import asyncio
import logging

from csbench.lib.api_client import send_exit_notification
from csbench.schema.parameters import RunParameters

log = logging.getLogger(__name__)


class RunStatus(Enum):
    """Status of an executor run."""

    CREATED = "created"
    INITIALIZING = "initializing"
    READY = "ready"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = (RunStatus.COMPLETED, RunStatus.FAILED)


class ExecutorComponent(ABC):
    """
    Abstract base class for workload executors.

    Executors follow a lifecycle:
    1. initialize() - Validate the host and resolve parameters and endpoints
    2. execute_workload() - Run the workload processes
    3. teardown - Run cleanup tasks, then send exit notifications

    The execute() method sequences this lifecycle under a single cancellation
    event. Errors move the run to FAILED and are re-raised; cancellation moves
    it to COMPLETED without an error. Teardown runs on every exit path.
    """

    def __init__(self, parameters: Optional[RunParameters] = None):
        """
        Initialize executor with run parameters.

        Args:
            parameters: Parameters from the execution profile and command line
        """
        self.parameters = parameters if parameters is not None else RunParameters()
        self.status = RunStatus.CREATED
        self.cleanup_tasks: List[Callable[[], None]] = []
        self.exit_notifications: List[Tuple[str, object]] = []

    @property
    def type_name(self) -> str:
        return self.__class__.__name__

    def register_exit_notification(self, event_name: str, client) -> None:
        """Send event_name to the API behind client when the run ends."""
        self.exit_notifications.append((event_name, client))

    @abstractmethod
    async def initialize(self, cancellation: asyncio.Event) -> None:
        """Validate the environment and resolve everything the workload needs."""
        pass

    @abstractmethod
    async def execute_workload(self, cancellation: asyncio.Event) -> None:
        """Run the workload."""
        pass

    def _transition(self, status: RunStatus) -> None:
        log.debug(f"{self.type_name}: {self.status.value} -> {status.value}")
        self.status = status

    async def execute(self, cancellation: Optional[asyncio.Event] = None) -> RunStatus:
        """
        Full lifecycle: initialize -> execute_workload -> teardown.

        Args:
            cancellation: Event that cancels the run once set

        Returns:
            RunStatus.COMPLETED when the run finished or was cancelled

        Raises:
            Any error raised by initialize() or execute_workload(), after teardown
        """
        if self.status != RunStatus.CREATED:
            raise RuntimeError(f"{self.type_name} has already been executed (status: {self.status.value})")

        cancellation = cancellation if cancellation is not None else asyncio.Event()

        try:
            self._transition(RunStatus.INITIALIZING)
            log.info(f"Initializing {self.type_name}...")
            await self.initialize(cancellation)

            if not cancellation.is_set():
                self._transition(RunStatus.READY)
                self._transition(RunStatus.EXECUTING)
                log.info(f"Running {self.type_name}...")
                await self.execute_workload(cancellation)

            self._transition(RunStatus.COMPLETED)
            if cancellation.is_set():
                log.info(f"{self.type_name} cancelled")
            return self.status

        except asyncio.CancelledError:
            cancellation.set()
            self._transition(RunStatus.COMPLETED)
            log.info(f"{self.type_name} task cancelled")
            raise

        except Exception:
            self._transition(RunStatus.FAILED)
            log.exception(f"Error during {self.type_name} execution")
            raise

        finally:
            log.info(f"Tearing down {self.type_name}...")
            self.run_cleanup_tasks()
            await self.send_exit_notifications()

    def run_cleanup_tasks(self) -> None:
        """Run every registered cleanup task once, in registration order."""
        tasks, self.cleanup_tasks = self.cleanup_tasks, []
        for task in tasks:
            try:
                task()
            except Exception as e:
                log.warning(f"Cleanup error (non-fatal): {e}")

    async def send_exit_notifications(self) -> None:
        notifications, self.exit_notifications = self.exit_notifications, []
        for event_name, client in notifications:
            await send_exit_notification(event_name, client)
