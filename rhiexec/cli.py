# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for rhiexec.

This module provides the main CLI entry point for the rhiexec tool, offering
commands to look at installed package versions and to check packages
against the host installations on a machine.

Commands:

    scan: List the version folders in a package family folder
    state: Show the install state of a package
    check: Check a package against a host inventory
    inspect: Run the full inspection (state, hosts, platforms)

Example:
    List installed versions:
        ```bash
        $ rhiexec scan "C:/ProgramData/McNeel/Rhinoceros/Plug-ins/Marmoset (abc)"
        ```

    Show install state:
        ```bash
        $ rhiexec state plugins/Marmoset.rhp.yaml --config rhiexec.yaml
        ```

    Check compatibility:
        ```bash
        $ rhiexec check plugins/Marmoset.rhp.yaml --hosts hosts.yaml
        ```

    Full inspection, saving the install state in the manifest:
        ```bash
        $ rhiexec inspect plugins/Marmoset.rhp.yaml --hosts hosts.yaml --write-state
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, manifest or I/O failure), or no compatible host
  found by 'check'

Note:
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode.

"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys
import traceback

from rhiexec.compatibility import HostSearchState, find_compatible_hosts
from rhiexec.config.loader import load_effective_config
from rhiexec.core import ensure_recognized, inspect_package, resolve_package_state
from rhiexec.exceptions import RhiExecError
from rhiexec.layout import InstallLayout
from rhiexec.logging import get_logger, set_global_logger
from rhiexec.manifest import load_host_descriptors, load_package_facts
from rhiexec.versioning import list_version_directories


def _configure_logger(args: argparse.Namespace) -> None:
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))


def _print_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        traceback.print_exc()
    return 1


def cmd_scan(args: argparse.Namespace) -> int:
    """Handler for 'rhiexec scan' command.

    Lists the folders under a family folder whose names are four-part
    version numbers, oldest first, and reports the newest one.

    Args:
        args: Parsed command-line arguments containing the folder and flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logger(args)

    folder = Path(args.folder).resolve()
    print(f"Scanning: {folder}")
    print()

    try:
        found = list_version_directories(folder)
    except RhiExecError as err:
        return _print_error(err, args)

    print("=" * 70)
    print("INSTALLED VERSIONS")
    print("=" * 70)
    if not found:
        print("(none)")
    for found_version, path in found:
        print(f"{str(found_version):<20} {path.name}")
    print("=" * 70)
    print(f"Newest:          {found[-1][0] if found else 'none'}")
    return 0


def cmd_state(args: argparse.Namespace) -> int:
    """Handler for 'rhiexec state' command.

    Resolves the install state of the package described by a manifest,
    using the install roots from the effective configuration.

    Args:
        args: Parsed command-line arguments containing the manifest path,
            config path and flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logger(args)

    manifest_path = Path(args.manifest).resolve()
    config_path = Path(args.config).resolve() if args.config else None

    try:
        layout = InstallLayout.from_config(load_effective_config(config_path))
        facts = load_package_facts(manifest_path)
        result = resolve_package_state(facts, layout)
    except RhiExecError as err:
        return _print_error(err, args)

    print("=" * 70)
    print("INSTALL STATE")
    print("=" * 70)
    print(f"Package:           {facts.title} ({facts.package_id})")
    print(f"Version:           {facts.version}")
    print(f"Preferred Root:    {facts.install_root}")
    print(f"Install State:     {result.state}")
    print(f"Found In:          {result.root or '-'}")
    print(f"Installed Version: {result.installed_version or '-'}")
    print("=" * 70)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'rhiexec check' command.

    Checks the package described by a manifest against every host in a host
    inventory and prints the verdict per host. Rejection reasons are logged
    as warnings.

    Args:
        args: Parsed command-line arguments containing the manifest path,
            host inventory path and flags.

    Returns:
        Exit code (0 if at least one host is compatible, 1 otherwise or on
        failure).

    """
    _configure_logger(args)

    manifest_path = Path(args.manifest).resolve()
    hosts_path = Path(args.hosts).resolve()

    try:
        facts = load_package_facts(manifest_path)
        ensure_recognized(facts)
        hosts = load_host_descriptors(hosts_path)
    except RhiExecError as err:
        return _print_error(err, args)

    state, compatible = find_compatible_hosts(facts, hosts)

    print("=" * 70)
    print("COMPATIBILITY RESULTS")
    print("=" * 70)
    print(f"Package:         {facts.title} {facts.version}")
    print(f"Kinds:           {', '.join(sorted(facts.kinds))}")
    print(f"Platforms:       {', '.join(sorted(p.value for p in facts.target_platforms)) or 'none'}")
    print()
    for host in hosts:
        mark = "OK" if host in compatible else "--"
        print(f"  [{mark}] {host.display_name}")
    print("=" * 70)
    print()

    if state is HostSearchState.FOUND:
        print(f"[SUCCESS] {len(compatible)} of {len(hosts)} host(s) can load the package")
        return 0

    print("[FAILED] No compatible host found")
    return 1


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handler for 'rhiexec inspect' command.

    Runs the full inspection of one package: configuration, install state,
    host compatibility and, with --write-state, saving the install state
    into the manifest.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logger(args)

    manifest_path = Path(args.manifest).resolve()

    print(f"Inspecting package: {manifest_path}")
    print()

    try:
        result = inspect_package(
            manifest_path,
            hosts_path=Path(args.hosts).resolve() if args.hosts else None,
            config_path=Path(args.config).resolve() if args.config else None,
            write_state=args.write_state,
            require_compatible=args.require_compatible,
        )
    except RhiExecError as err:
        return _print_error(err, args)

    package = result.package
    print("=" * 70)
    print("INSPECTION RESULTS")
    print("=" * 70)
    print(f"Package:           {package.title} ({package.package_id})")
    print(f"Version:           {package.version}")
    print(f"Platform:          {package.os_platform}")
    print(f"Install State:     {result.install_state}")
    print(f"Found In:          {result.install_root or '-'}")
    print(f"Installed Version: {result.installed_version or '-'}")
    print(f"Host Search:       {result.host_search.value}")
    print(f"Compatible Hosts:  {len(result.compatible_hosts)} of {result.hosts_checked}")
    for host in result.compatible_hosts:
        print(f"  - {host.display_name}")
    print(f"State Written:     {'yes' if result.state_written else 'no'}")
    print(f"Status:            {result.status}")
    print("=" * 70)
    print()
    print("[SUCCESS] Inspection complete!")
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file with install roots (default: built-in roots)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhiexec",
        description="rhiexec - package install state and host compatibility checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"rhiexec {version('rhiexec')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'scan' command
    parser_scan = subparsers.add_parser(
        "scan",
        help="List version folders in a package family folder",
        description="List the subfolders named as four-part versions and report the newest.",
    )
    parser_scan.add_argument("folder", help="Path to the package family folder")
    _add_common_arguments(parser_scan)
    parser_scan.set_defaults(func=cmd_scan)

    # 'state' command
    parser_state = subparsers.add_parser(
        "state",
        help="Show the install state of a package",
        description="Compare the package version with what is installed for all users and the current user.",
    )
    parser_state.add_argument("manifest", help="Path to the package manifest (YAML)")
    _add_config_argument(parser_state)
    _add_common_arguments(parser_state)
    parser_state.set_defaults(func=cmd_state)

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        help="Check a package against the installed hosts",
        description="Evaluate the compatibility rules for every host in a host inventory.",
    )
    parser_check.add_argument("manifest", help="Path to the package manifest (YAML)")
    parser_check.add_argument(
        "--hosts",
        required=True,
        help="Host inventory YAML file",
    )
    _add_common_arguments(parser_check)
    parser_check.set_defaults(func=cmd_check)

    # 'inspect' command
    parser_inspect = subparsers.add_parser(
        "inspect",
        help="Run the full package inspection",
        description="Resolve install state and host compatibility, optionally saving the state.",
    )
    parser_inspect.add_argument("manifest", help="Path to the package manifest (YAML)")
    parser_inspect.add_argument(
        "--hosts",
        default=None,
        help="Host inventory YAML file (default: skip compatibility check)",
    )
    parser_inspect.add_argument(
        "--write-state",
        action="store_true",
        help="Save the resolved install state into the manifest",
    )
    parser_inspect.add_argument(
        "--require-compatible",
        action="store_true",
        help="Fail when hosts were checked and none can load the package",
    )
    _add_config_argument(parser_inspect)
    _add_common_arguments(parser_inspect)
    parser_inspect.set_defaults(func=cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the rhiexec CLI.

    This function is registered as the 'rhiexec' console script in pyproject.toml.
    """
    parser = build_parser()

    # Parse and dispatch
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
