#!/usr/bin/env python3
import argparse
import sys
import os
import importlib
import pkgutil
import importlib.metadata as metadata
from csbench.cli_plugins.base import SubcommandPlugin

PLUGIN_DIR = os.path.join(os.path.dirname(__file__), "cli_plugins")


def get_version():
    """Get the version from importlib.metadata or fallback to version.txt file."""
    try:
        return f"csbench: {metadata.version('csbench')}"
    except metadata.PackageNotFoundError:
        # Fallback for development
        version_file = os.path.join(os.path.dirname(__file__), "..", "version.txt")
        if os.path.exists(version_file):
            with open(version_file) as f:
                return f"csbench: {f.read().strip()}"
    return "csbench: unknown"


def discover_plugins():
    """Discover and instantiate all CLI subcommand plugin classes from the cli_plugins directory.

    Only classes defined directly in a plugin module (not imported) are considered to
    avoid duplicates from relative imports.

    Returns:
        list: A list of instantiated plugin objects, sorted by order then alphabetically by name.
    """
    plugins = []
    for _, name, ispkg in pkgutil.iter_modules([PLUGIN_DIR]):
        if not ispkg:
            try:
                mod = importlib.import_module(f"csbench.cli_plugins.{name}")
                for attr in dir(mod):
                    obj = getattr(mod, attr)
                    if (
                        isinstance(obj, type)
                        and issubclass(obj, SubcommandPlugin)
                        and obj is not SubcommandPlugin
                        and obj.__module__ == mod.__name__
                    ):
                        plugins.append(obj())
            except ImportError as e:
                print(f"Warning: Failed to load plugin {name}: {e}")

    return sorted(plugins, key=lambda p: (p.get_order(), p.get_name()))


def build_arg_parser(plugins):
    """Build the main argument parser with one subparser per plugin.

    Epilog text (examples) from all plugins is concatenated into the main parser's epilog.
    """
    epilogs = [plugin.get_epilog() for plugin in plugins if plugin.get_epilog().strip()]
    epilog = "\n".join(epilogs) if epilogs else ""

    parser = argparse.ArgumentParser(
        description="Client/server benchmark run coordinator (csbench)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    parser.add_argument("--version", action="version", version=get_version())
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for plugin in plugins:
        plugin.get_parser(subparsers)
    return parser


def main(plugins=None):
    if plugins is None:
        plugins = discover_plugins()
    parser = build_arg_parser(plugins)
    args = parser.parse_args()

    # Dispatch to plugin
    if hasattr(args, "_plugin"):
        args._plugin.run(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
