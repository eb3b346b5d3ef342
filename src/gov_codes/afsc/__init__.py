"""
Air Force Specialty Codes.

Module-level helpers work against a default registry that is built on first
use from the project configuration (.gov_codes/config.yaml, if any):

    from gov_codes import afsc

    afsc.find("1A1X2A").name          # -> "C-5 flight engineer"
    [c.code for c in afsc.search("8G")]
    afsc.reset_data(lookup=["/path/with/gov_codes/afsc/enlisted.yml"])
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from gov_codes.afsc.grammar import (
    ENLISTED,
    OFFICER,
    REPORTING_IDENTIFIER,
    EnlistedRecord,
    FacetRecord,
    Grammar,
    OfficerRecord,
    ReportingIdentifierRecord,
    Scanner,
)
from gov_codes.afsc.reference import (
    GovCodesError,
    Leaf,
    Node,
    ReferenceShapeError,
    ReferenceSource,
    ReferenceTree,
    build_tree,
)
from gov_codes.afsc.resolver import (
    BaseResolver,
    CodeResolution,
    EnlistedResolver,
    LookupStatus,
    OfficerResolver,
    ReportingIdentifierResolver,
    ResolvedCode,
    ResolverRegistry,
)

_registry: Optional[ResolverRegistry] = None
_registry_lock = threading.Lock()


def default_registry() -> ResolverRegistry:
    """The registry behind the module-level helpers."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ResolverRegistry.from_config()
    return _registry


def find(code: Optional[str]) -> Optional[ResolvedCode]:
    """Resolve a code in the first family that knows it (enlisted, officer, ri)."""
    return default_registry().find(code)


def search(prefix: Optional[str]) -> List[ResolvedCode]:
    """All known codes starting with prefix, across every family."""
    return default_registry().search(prefix)


def reset_data(lookup: Optional[Sequence[Union[str, Path]]] = None) -> None:
    """Reload reference data for every family."""
    default_registry().reload(lookup)


def data(family: str, lookup: Optional[Sequence[Union[str, Path]]] = None) -> Dict[str, Any]:
    """Merged raw reference data for one family."""
    return default_registry().data(family, lookup)


__all__ = [
    # Grammar
    "ENLISTED",
    "OFFICER",
    "REPORTING_IDENTIFIER",
    "Grammar",
    "Scanner",
    "FacetRecord",
    "EnlistedRecord",
    "OfficerRecord",
    "ReportingIdentifierRecord",
    # Reference data
    "GovCodesError",
    "ReferenceShapeError",
    "Leaf",
    "Node",
    "ReferenceTree",
    "ReferenceSource",
    "build_tree",
    # Resolution
    "BaseResolver",
    "EnlistedResolver",
    "OfficerResolver",
    "ReportingIdentifierResolver",
    "ResolverRegistry",
    "ResolvedCode",
    "CodeResolution",
    "LookupStatus",
    # Helpers
    "default_registry",
    "find",
    "search",
    "reset_data",
    "data",
]
