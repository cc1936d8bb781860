import sys

from .base import SubcommandPlugin
from csbench.errors import WorkloadException
from csbench.lib.linux_utils import HostSystem, PlatformID
from csbench.lib.utils_lib import fail_run
from csbench.lib.verify_lib import validate_platform_support


class CheckPlugin(SubcommandPlugin):
    def get_name(self):
        return "check"

    def get_order(self):
        return 2

    def get_parser(self, subparsers):
        parser = subparsers.add_parser("check", help="Check whether this host supports the workload")
        parser.set_defaults(_plugin=self)
        return parser

    def get_epilog(self):
        return """
Check Commands:
  csbench check                      Verify platform and Linux distribution support"""

    def run(self, args, host=None):
        host = host or HostSystem()
        distribution_info = host.get_linux_distribution() if host.platform == PlatformID.UNIX else None
        print(f"Platform     : {host.platform_architecture_name}")
        if distribution_info:
            print(f"Distribution : {distribution_info.distribution.value} ({distribution_info.name})")
        try:
            validate_platform_support(host.platform, distribution_info, host.platform_architecture_name)
        except WorkloadException as e:
            fail_run(str(e))
            sys.exit(1)
        print("PASS - platform supported")
        sys.exit(0)
