"""
Code Lookup CLI Command
=======================
Provides CLI interface for resolving and searching codes.

Commands:
- find: Resolve one code to its name
- search: List every known code starting with a prefix
- families: List code families in lookup order
- data: Dump merged reference data for a family

Usage:
    gov-codes find 1A1X2A
    gov-codes find 11MX --format json
    gov-codes find 9Z999 --explain
    gov-codes search 1Z1
    gov-codes data officer --lookup ./overrides
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

from gov_codes.afsc.resolver import ResolvedCode, ResolverRegistry
from gov_codes.utils.repo import find_project_root


class LookupCommand:
    """
    CLI command handler for code lookups.

    Builds a registry from the project configuration; extra ``lookup``
    directories are layered on top of the configured ones.
    """

    def __init__(self, root: Optional[Path] = None, lookup: Optional[List[str]] = None):
        self.root = root or find_project_root()
        self.registry = ResolverRegistry.from_config(self.root)
        if lookup:
            configured = self.registry.lookup or []
            self.registry.reload(list(configured) + [Path(d) for d in lookup])

    def find(self, code: str, format: str = "text", explain: bool = False) -> int:
        """
        Resolve a single code.

        Args:
            code: The code to resolve
            format: Output format - "text", "json" or "yaml"
            explain: Also print why each family did or did not match

        Returns:
            Exit code (0 if found, 1 otherwise)
        """
        resolved = self.registry.find(code)
        diagnoses = self.registry.diagnose(code) if explain else {}

        if format != "text":
            payload = resolved.as_dict() if resolved else None
            if explain:
                # One document: the result plus every family's outcome
                payload = {
                    "result": payload,
                    "diagnostics": [r.as_dict() for r in diagnoses.values()],
                }
            self._dump(payload, format)
            return 0 if resolved else 1

        if resolved:
            self._print_code(resolved)
        else:
            print(f"Not found: {code}")

        if explain:
            print()
            for family, resolution in diagnoses.items():
                reason = resolution.error or resolution.resolved.name
                print(f"  {family:<9} {resolution.status.value:<19} {reason}")

        return 0 if resolved else 1

    def search(self, prefix: str, format: str = "text") -> int:
        """
        List known codes starting with prefix.

        Args:
            prefix: Code prefix (case-insensitive)
            format: Output format - "text", "json" or "yaml"

        Returns:
            Exit code (always 0)
        """
        results = self.registry.search(prefix)

        if format == "text":
            for resolved in results:
                self._print_code(resolved)
            print(f"\nTotal: {len(results)} codes")
        else:
            self._dump([r.as_dict() for r in results], format)

        return 0

    def list_families(self) -> int:
        """Print registered families in lookup order."""
        for family in self.registry.families:
            resolver = self.registry.get_resolver(family)
            print(f"{family:<9} {len(resolver.tree)} top-level entries")
        return 0

    def data(self, family: str) -> int:
        """Dump merged raw reference data for a family as YAML."""
        try:
            merged = self.registry.data(family)
        except KeyError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(yaml.dump(merged, default_flow_style=False, sort_keys=False, allow_unicode=True))
        return 0

    @staticmethod
    def _print_code(resolved: ResolvedCode) -> None:
        print(f"{resolved.code:<8} {resolved.family:<9} {resolved.name}")

    @staticmethod
    def _dump(payload: Any, format: str) -> None:
        if format == "json":
            print(json.dumps(payload, indent=2))
        else:
            print(yaml.dump(payload, default_flow_style=False, sort_keys=False, allow_unicode=True))
