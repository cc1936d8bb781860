'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

import os
import time
import shlex
import signal
import subprocess
import asyncio
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from csbench.errors import ErrorReason, WorkloadException
from csbench.lib.linux_utils import PlatformID

log = logging.getLogger(__name__)

DEFAULT_SUCCESS_CODES = frozenset({0})

# Output kept in error messages, the full output stays on the outcome
MAX_ERROR_OUTPUT_CHARS = 4096

# Seconds to wait for the output pipes to drain after a kill
KILL_DRAIN_TIMEOUT = 5


@dataclass(frozen=True)
class ProcessInvocation:
    """One command to execute. Built per execution attempt, never reused."""

    command: str
    arguments: str = ''
    working_dir: Optional[str] = None
    success_codes: FrozenSet[int] = field(default_factory=lambda: DEFAULT_SUCCESS_CODES)

    @property
    def command_line(self) -> str:
        return f'{self.command} {self.arguments}'.strip()


@dataclass(frozen=True)
class ProcessOutcome:
    """Exit code, captured output and elapsed time of a finished process."""

    exit_code: Optional[int]
    stdout: str = ''
    stderr: str = ''
    elapsed: float = 0.0

    def summary(self) -> dict:
        """Outcome without the raw output, kept for telemetry."""
        return {
            'exitCode': self.exit_code,
            'elapsed': round(self.elapsed, 3),
            'stdoutLength': len(self.stdout),
            'stderrLength': len(self.stderr),
        }


class ProcessProxy():
    """
    Handle to an external process started with asyncio.

    The proxy is single use: start_and_wait() may be called once. safe_kill()
    can be called any number of times, before or after the process exits.
    elevation_command (e.g. sudo) is used to kill process groups the runtime
    is not permitted to signal itself.
    """

    def __init__(self, invocation, elevation_command=None):
        self.invocation = invocation
        self.elevation_command = elevation_command
        self._process = None
        self._start_time = None
        self.exit_code = None
        self.standard_output = ''
        self.standard_error = ''
        self.elapsed = 0.0

    @property
    def command(self):
        return self.invocation.command

    @property
    def arguments(self):
        return self.invocation.arguments

    @property
    def working_dir(self):
        return self.invocation.working_dir

    @property
    def has_exited(self):
        return self._process is not None and self._process.returncode is not None

    def outcome(self):
        return ProcessOutcome(
            exit_code=self.exit_code,
            stdout=self.standard_output,
            stderr=self.standard_error,
            elapsed=self.elapsed,
        )

    async def start_and_wait(self, cancellation):
        """
        Start the process and wait until it exits or cancellation is set.

        When the cancellation event fires first the process is killed and the
        output captured so far is kept. The exit code is then whatever the
        killed process reported.
        """
        if self._process is not None:
            raise RuntimeError(f'Process {self.invocation.command_line} has already been started')

        log.debug(f'cmd = {self.invocation.command_line}')
        self._start_time = time.monotonic()
        self._process = await asyncio.create_subprocess_exec(
            self.command,
            *shlex.split(self.arguments),
            cwd=self.working_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )

        communicate = asyncio.ensure_future(self._process.communicate())
        cancelled = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait({communicate, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            communicate.cancel()
            raise
        finally:
            cancelled.cancel()

        if communicate not in done:
            log.info(f'Cancellation requested, killing process {self._process.pid}')
            self.safe_kill()
            try:
                await asyncio.wait_for(asyncio.shield(communicate), timeout=KILL_DRAIN_TIMEOUT)
            except asyncio.TimeoutError:
                communicate.cancel()

        if communicate.done() and not communicate.cancelled():
            stdout, stderr = communicate.result()
            self.standard_output = (stdout or b'').decode(errors='replace')
            self.standard_error = (stderr or b'').decode(errors='replace')

        self.exit_code = self._process.returncode
        self.elapsed = time.monotonic() - self._start_time

    def safe_kill(self):
        """
        Forcibly terminate the process and its session. Does nothing when the
        process was never started or has already exited. Never raises.
        """
        if self._process is None or self._process.returncode is not None:
            return
        # start_new_session makes the process its own group leader
        pgid = self._process.pid
        try:
            os.killpg(pgid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            log.debug(f'Not permitted to signal process group {pgid}')

        # Root owned groups (e.g. started through sudo) have to be killed elevated
        if self.elevation_command and self._elevated_kill(pgid):
            return

        try:
            self._process.terminate()
        except ProcessLookupError:
            pass
        except PermissionError as e:
            log.warning(f'Unable to kill process {pgid}: {e}')

    def _elevated_kill(self, pgid):
        command = [self.elevation_command, 'kill', '-KILL', '--', f'-{pgid}']
        try:
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=KILL_DRAIN_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.warning(f"'{' '.join(command)}' failed: {e}")
            return False
        if result.returncode != 0:
            log.warning(f"'{' '.join(command)}' exited with {result.returncode}: {result.stderr.decode(errors='replace').strip()}")
            return False
        return True


class ProcessManager():
    """
    Creates processes for the current host. On Unix hosts elevated processes
    are run through sudo unless the runtime already runs as root.
    """

    def __init__(self, sudo_command='sudo'):
        self.sudo_command = sudo_command

    def create_process(self, command, arguments='', working_dir=None, elevation_command=None):
        invocation = ProcessInvocation(command=command, arguments=arguments, working_dir=working_dir)
        return ProcessProxy(invocation, elevation_command=elevation_command)

    def create_elevated_process(self, platform, command, arguments='', working_dir=None):
        if platform == PlatformID.UNIX and os.geteuid() != 0:
            return self.create_process(
                self.sudo_command,
                f'{command} {arguments}'.strip(),
                working_dir,
                elevation_command=self.sudo_command,
            )
        return self.create_process(command, arguments, working_dir)


def accepted_exit_codes(success_codes: Optional[Iterable[int]] = None, always_accepted: Iterable[int] = ()):
    """Caller supplied success codes (or the defaults) plus the always accepted codes."""
    codes = set(DEFAULT_SUCCESS_CODES if success_codes is None else success_codes)
    codes.update(always_accepted)
    return frozenset(codes)


def throw_if_errored(process, success_codes, error_reason=ErrorReason.WORKLOAD_FAILED):
    """
    Raise a WorkloadException when the process exit code is not in success_codes.

    The exception carries the full ProcessOutcome; its message holds the
    command, the exit code and the tail of stdout/stderr.
    """
    if process.exit_code in success_codes:
        return

    outcome = process.outcome()
    output = (outcome.stderr or outcome.stdout or '').strip()
    if len(output) > MAX_ERROR_OUTPUT_CHARS:
        output = '...' + output[-MAX_ERROR_OUTPUT_CHARS:]
    raise WorkloadException(
        f"Process '{process.invocation.command_line}' failed with exit code {process.exit_code}. "
        f"Accepted exit codes: {', '.join(str(c) for c in sorted(success_codes))}. "
        f"Output: {output or '<none>'}",
        error_reason,
        outcome=outcome,
    )
