import asyncio
import logging
import os
import signal
import sys

from .base import SubcommandPlugin
from csbench.errors import CsbenchException
from csbench.lib.utils_lib import fail_run, print_process_output
from csbench.runners.memcached import MemcachedExecutor, SUPPORTED_ROLES
from csbench.schema.layout import load_layout
from csbench.schema.parameters import RunParameters, load_profile, parse_parameter_overrides

log = logging.getLogger(__name__)


def configure_logging(log_file, log_level):
    """Log to log_file and to the console at log_level."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, log_level or "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


class RunPlugin(SubcommandPlugin):
    def get_name(self):
        return "run"

    def get_order(self):
        return 1

    def get_parser(self, subparsers):
        parser = subparsers.add_parser("run", help="Run the client or server role of the memcached workload")
        parser.add_argument("--role", choices=SUPPORTED_ROLES, help="Role for single-node runs (default: Client)")
        parser.add_argument("--profile_file", help="Path to execution profile JSON file")
        parser.add_argument("--layout_file", help="Path to environment layout JSON file (multi-node runs)")
        parser.add_argument(
            "--parameters",
            help="Parameter overrides, e.g. 'Port=6379,,,Username=memcached'",
        )
        parser.add_argument("--agent-id", dest="agent_id", help="Name of this node in the layout (default: host name)")
        parser.add_argument(
            "--log-file",
            default="/tmp/csbench/run.log",
            help="Path to file for logging output (default: /tmp/csbench/run.log)",
        )
        parser.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Level of messages to log (default: INFO)",
        )
        parser.set_defaults(_plugin=self)
        return parser

    def get_epilog(self):
        return """
Run Commands:
  csbench run --role Server                                 Run the memcached server on this node
  csbench run --role Client                                 Run memtier against the local server
  csbench run --layout_file layout.json --agent-id node1    Run this node's role of a multi-node layout"""

    def build_executor(self, args):
        parameters = RunParameters()
        if args.profile_file:
            parameters = load_profile(args.profile_file).to_parameters()
        overrides = parse_parameter_overrides(args.parameters)
        if args.role:
            overrides["Role"] = args.role
        parameters = parameters.merged(overrides)

        layout = load_layout(args.layout_file) if args.layout_file else None
        return MemcachedExecutor(parameters=parameters, layout=layout, agent_id=args.agent_id)

    async def run_executor(self, executor):
        cancellation = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, cancellation.set)
            except (NotImplementedError, RuntimeError):
                pass
        return await executor.execute(cancellation)

    def run(self, args):
        configure_logging(args.log_file, args.log_level)
        try:
            executor = self.build_executor(args)
            status = asyncio.run(self.run_executor(executor))
        except CsbenchException as e:
            if e.outcome is not None:
                print_process_output(e.outcome)
            fail_run(str(e))
            sys.exit(1)
        print(f"{executor.type_name} ({executor.role}) finished: {status.value}")
        sys.exit(0)
