from .base import SubcommandPlugin
from csbench.runners.memcached import PARAMETER_DEFAULTS, WORKLOAD_VARIANTS


class ListPlugin(SubcommandPlugin):
    def get_name(self):
        return "list"

    def get_order(self):
        return 3

    def get_parser(self, subparsers):
        parser = subparsers.add_parser("list", help="List workload roles and parameters")
        parser.set_defaults(_plugin=self)
        return parser

    def get_epilog(self):
        return """
List Commands:
  csbench list                       List roles and parameter defaults"""

    def run(self, args):
        print("Roles:")
        for variant in WORKLOAD_VARIANTS.values():
            print(f"  - {variant.role}: {variant.__doc__}")
        print("\nParameters:")
        for name, default in PARAMETER_DEFAULTS.items():
            print(f"  - {name} (default: {default!r})")
