#!/usr/bin/env python3
"""
gov-codes - command-line lookup of Air Force Specialty Codes.

Commands:
- find: Resolve a code (enlisted, officer or reporting identifier)
- search: List known codes starting with a prefix
- families: Show code families in lookup order
- data: Dump merged reference data for a family

Usage:
    gov-codes find 1A1X2                     # Enlisted AFSC
    gov-codes find 11MX --format json        # Officer AFSC as JSON
    gov-codes find 8G000B --explain          # Show per-family outcome
    gov-codes search 1z1                     # Case-insensitive prefix search
    gov-codes families                       # enlisted, officer, ri
    gov-codes data ri                        # Merged RI reference data (YAML)
    gov-codes --lookup ./data find 9Z200     # Overlay extra reference data
    gov-codes --help                         # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

from gov_codes.commands.lookup import LookupCommand


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="gov-codes",
        description="Resolve Air Force Specialty Codes and reporting identifiers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s find 1A1X2A                   C-5 flight engineer
  %(prog)s find A1A1X2A                  Same code with a prefix letter
  %(prog)s find 11M0 --format yaml       Officer code as YAML
  %(prog)s find 9Z999 --explain          Why a code was not found
  %(prog)s search 11BX                   Bomber pilot and its shredouts
  %(prog)s data enlisted                 Merged enlisted reference data

Reference data:
  Files are read from <dir>/gov_codes/afsc/<family>.yml for the bundled
  data, every lookup.paths entry in .gov_codes/config.yaml and every
  --lookup directory, later files overriding earlier ones.
        """
    )

    parser.add_argument(
        "--root",
        type=str,
        help="Project root holding .gov_codes/config.yaml (default: search upward from cwd)"
    )
    parser.add_argument(
        "--lookup", "-l",
        type=str,
        action="append",
        dest="lookup",
        metavar="DIR",
        help="Extra reference data directory (can be repeated)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log lookup diagnostics to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ----- gov-codes find CODE -----
    find_parser = subparsers.add_parser(
        "find",
        help="Resolve a code to its name"
    )
    find_parser.add_argument(
        "code",
        type=str,
        help="Code to resolve (e.g., 1A1X2A, 11MX, 8G000B)"
    )
    find_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (default: text)"
    )
    find_parser.add_argument(
        "--explain",
        action="store_true",
        help="Show the outcome of every family"
    )

    # ----- gov-codes search PREFIX -----
    search_parser = subparsers.add_parser(
        "search",
        help="List known codes starting with a prefix"
    )
    search_parser.add_argument(
        "prefix",
        type=str,
        help="Code prefix (case-insensitive)"
    )
    search_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- gov-codes families -----
    subparsers.add_parser(
        "families",
        help="List code families in lookup order"
    )

    # ----- gov-codes data FAMILY -----
    data_parser = subparsers.add_parser(
        "data",
        help="Dump merged reference data for a family"
    )
    data_parser.add_argument(
        "family",
        type=str,
        choices=["enlisted", "officer", "ri"],
        help="Code family"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    if not args.command:
        parser.print_help()
        return 0

    root = Path(args.root) if args.root else None
    cmd = LookupCommand(root=root, lookup=args.lookup)

    if args.command == "find":
        return cmd.find(code=args.code, format=args.format, explain=args.explain)
    elif args.command == "search":
        return cmd.search(prefix=args.prefix, format=args.format)
    elif args.command == "families":
        return cmd.list_families()
    elif args.command == "data":
        return cmd.data(family=args.family)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
