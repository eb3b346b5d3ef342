"""
AFSC Resolution Engine
======================
Family-specific resolvers that turn code strings into named records.

Each code family has a dedicated resolver that:
- Scans a code with the family grammar
- Validates the scanned record (required facets, length, characters)
- Descends the family reference tree to the most specific name
- Enumerates known codes for a prefix

Architecture:
- ResolvedCode: Immutable facet record + name
- CodeResolution: Lookup outcome with the reason a code did not resolve
- BaseResolver: Shared scan/validate/descend/search logic
- ResolverRegistry: Tries families in priority order (enlisted, officer, ri)
"""
from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from gov_codes.afsc.grammar import (
    ENLISTED,
    OFFICER,
    REPORTING_IDENTIFIER,
    FacetRecord,
    Grammar,
    Scanner,
    char_class,
)
from gov_codes.afsc.reference import (
    Node,
    ReferenceEntry,
    ReferenceSource,
    ReferenceTree,
    data as load_data,
)

logger = logging.getLogger(__name__)

Lookup = Optional[Sequence[Union[str, Path]]]

NOT_FOUND_NAME = "Unknown"

_INVALID_CHARS_RE = re.compile(r"[^A-Z0-9]")


class LookupStatus(Enum):
    """Why a lookup did (or did not) produce a name."""
    FOUND = "found"
    PARSE_INCOMPLETE = "parse_incomplete"
    VALIDATION_FAILURE = "validation_failure"
    DATA_ABSENT = "data_absent"


@dataclass(frozen=True)
class ResolvedCode:
    """A scanned code together with the name it resolved to."""
    family: str
    record: FacetRecord
    name: str

    @property
    def code(self) -> str:
        return self.record.compose()

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"family": self.family, "code": self.code, "name": self.name}
        result.update(self.record.as_dict())
        return result


@dataclass
class CodeResolution:
    """
    Result of looking a code up in one family.

    Attributes:
        code: The raw code as given
        family: Code family (enlisted, officer, ri)
        status: Outcome of the lookup
        resolved: The resolved code when status is FOUND
        error: Human readable reason when not found
        record: Facets scanned from the code, if any
    """
    code: str
    family: str
    status: LookupStatus
    resolved: Optional[ResolvedCode] = None
    error: Optional[str] = None
    record: Optional[FacetRecord] = None

    @property
    def is_resolved(self) -> bool:
        return self.status is LookupStatus.FOUND and self.resolved is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "status": self.status.value,
            "name": self.resolved.name if self.resolved else None,
            "error": self.error,
        }


class CodeResolver(Protocol):
    """Protocol for family-specific code resolvers."""

    @property
    def family(self) -> str:
        ...

    def find(self, code: Optional[str]) -> Optional[ResolvedCode]:
        ...

    def search(self, prefix: Optional[str]) -> List[ResolvedCode]:
        ...


class BaseResolver(ABC):
    """
    Base class for code resolvers.

    Subclasses name their family, the facets that key the top level of the
    tree (``base_keys``, tried in order) and the facets used to descend
    below it (``descent``).
    """

    base_keys: Tuple[Tuple[str, ...], ...] = ()
    descent: Tuple[str, ...] = ()
    # Levels of the tree that must match for a name to count (base = 1)
    required_depth: int = 1

    def __init__(
        self,
        lookup: Lookup = None,
        tree: Optional[ReferenceTree] = None,
        allow_trailing_input: bool = False,
    ):
        self.grammar = self._build_grammar()
        self.scanner = Scanner(self.grammar)
        self.allow_trailing_input = allow_trailing_input
        self.source = ReferenceSource(self.family, lookup, tree)
        self._cache: Dict[str, ResolvedCode] = {}
        self._cache_lock = threading.Lock()

    @property
    @abstractmethod
    def family(self) -> str:
        """Return the code family this resolver handles."""
        pass

    @abstractmethod
    def _build_grammar(self) -> Grammar:
        pass

    @property
    def tree(self) -> ReferenceTree:
        return self.source.tree

    def parse(self, code: Optional[str]) -> FacetRecord:
        """Scan a code into this family's facet record (never raises)."""
        return self.grammar.build_record(self.scanner.scan(code))

    def can_resolve(self, code: Optional[str]) -> bool:
        """True if the code is well formed for this family."""
        return self._check(self._normalize(code))[0] is None

    @staticmethod
    def _normalize(code: Optional[str]) -> str:
        return "" if code is None else str(code)

    def _check(self, code: str) -> Tuple[Optional[CodeResolution], FacetRecord]:
        """Scan and validate. Returns (failure or None, record)."""
        scan = self.scanner.scan(code)
        record = self.grammar.build_record(scan)

        missing = self.grammar.missing(record)
        if record.is_empty or missing:
            return self._failure(
                code, LookupStatus.PARSE_INCOMPLETE,
                f"Missing facets: {', '.join(missing) or 'all'}", record,
            ), record

        if len(code) > self.grammar.max_length:
            return self._failure(
                code, LookupStatus.VALIDATION_FAILURE,
                f"Longer than {self.grammar.max_length} characters", record,
            ), record

        if _INVALID_CHARS_RE.search(code):
            return self._failure(
                code, LookupStatus.VALIDATION_FAILURE,
                "Contains characters outside [A-Z0-9]", record,
            ), record

        if scan.remainder and not self.allow_trailing_input:
            return self._failure(
                code, LookupStatus.VALIDATION_FAILURE,
                f"Unconsumed trailing input: {scan.remainder!r}", record,
            ), record

        return None, record

    def _failure(
        self, code: str, status: LookupStatus, error: str, record: Optional[FacetRecord]
    ) -> CodeResolution:
        return CodeResolution(code=code, family=self.family, status=status, error=error, record=record)

    def diagnose(self, code: Optional[str], tree: Optional[ReferenceTree] = None) -> CodeResolution:
        """
        Look a code up without the cache, keeping the reason for a miss.

        Args:
            code: Raw code string (None is treated as empty)
            tree: Tree to resolve against (default: the current tree)
        """
        code = self._normalize(code)
        failure, record = self._check(code)
        if failure:
            return failure

        name = self.resolve(record, tree)
        if name is None or name == NOT_FOUND_NAME:
            return self._failure(
                code, LookupStatus.DATA_ABSENT,
                f"No {self.family} reference entry for {record.compose()}", record,
            )

        return CodeResolution(
            code=code,
            family=self.family,
            status=LookupStatus.FOUND,
            resolved=ResolvedCode(family=self.family, record=record, name=name),
            record=record,
        )

    def find(self, code: Optional[str]) -> Optional[ResolvedCode]:
        """Resolve a code, or return None if it is malformed or unknown."""
        key = self._normalize(code)
        tree = self.source.tree

        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolution = self.diagnose(key, tree)
        if not resolution.is_resolved:
            logger.debug(
                "%s lookup of %r: %s (%s)",
                self.family, key, resolution.status.value, resolution.error,
            )
            return None

        with self._cache_lock:
            # A reload may have happened meanwhile; don't cache stale names
            if self.source.tree is tree:
                return self._cache.setdefault(key, resolution.resolved)
        return resolution.resolved

    def _base_entry(self, record: FacetRecord, tree: ReferenceTree) -> Optional[ReferenceEntry]:
        for facets in self.base_keys:
            parts = [getattr(record, facet) for facet in facets]
            if any(part is None for part in parts):
                continue
            entry = tree.get("".join(parts))
            if entry is not None:
                return entry
        return None

    def resolve(self, record: FacetRecord, tree: Optional[ReferenceTree] = None) -> Optional[str]:
        """
        Descend the reference tree along the record's facets.

        Returns:
            The deepest name found, or None if the base key is unknown or
            fewer than ``required_depth`` levels matched.
        """
        tree = self.source.tree if tree is None else tree
        if not isinstance(tree, ReferenceTree):
            raise TypeError(f"Expected ReferenceTree, got {type(tree).__name__}")

        entry = self._base_entry(record, tree)
        if entry is None:
            return None

        name = entry.name
        depth = 1
        for facet in self.descent:
            if not isinstance(entry, Node):
                break
            key = getattr(record, facet)
            if key is None:
                break
            child = entry.children.get(key)
            if child is None:
                break
            entry = child
            depth += 1
            if child.name is not None:
                name = child.name

        if depth < self.required_depth:
            return None
        return name

    def collect_codes(self, prefix: str, tree: Optional[ReferenceTree] = None) -> List[str]:
        """Composed codes in the tree that start with prefix (depth-first)."""
        tree = self.source.tree if tree is None else tree
        codes: List[str] = []
        self._collect(tree.entries, "", prefix, codes)
        return codes

    def _collect(
        self,
        entries: Mapping[str, ReferenceEntry],
        current: str,
        prefix: str,
        codes: List[str],
    ) -> None:
        for key, entry in entries.items():
            code = f"{current}{key}"
            # Children extend the code, so nothing below can match
            if not (code.startswith(prefix) or prefix.startswith(code)):
                continue
            if entry.name is not None and code.startswith(prefix):
                codes.append(code)
            if isinstance(entry, Node) and entry.children:
                self._collect(entry.children, code, prefix, codes)

    def search(self, prefix: Optional[str]) -> List[ResolvedCode]:
        """Every resolvable code in this family starting with prefix."""
        prefix = self._normalize(prefix).upper()
        results = []
        for candidate in self.collect_codes(prefix):
            resolved = self.find(candidate)
            if resolved is None:
                logger.debug("Dropping %s search candidate %s", self.family, candidate)
                continue
            results.append(resolved)
        return results

    def reload(self, lookup: Lookup = None) -> None:
        """Rebuild the reference tree and drop cached lookups."""
        self.source.reload(lookup)
        with self._cache_lock:
            self._cache = {}

    def data(self, lookup: Lookup = None) -> Dict[str, Any]:
        """Merged raw reference data for this family."""
        return load_data(self.family, self.source.lookup if lookup is None else lookup)


class EnlistedResolver(BaseResolver):
    """
    Resolver for enlisted AFSCs.

    Resolution: career_field -> subcategory -> shredout
    (1A -> 1X2 -> A for 1A1X2A)
    """

    base_keys = (("career_field",),)
    descent = ("subcategory", "shredout")

    def __init__(self, lookup: Lookup = None, tree: Optional[ReferenceTree] = None,
                 allow_trailing_input: bool = False, skill_levels: Optional[str] = None):
        self.skill_levels = skill_levels
        super().__init__(lookup, tree, allow_trailing_input)

    @property
    def family(self) -> str:
        return "enlisted"

    def _build_grammar(self) -> Grammar:
        if self.skill_levels:
            return ENLISTED.with_pattern("skill", char_class(self.skill_levels))
        return ENLISTED


class OfficerResolver(BaseResolver):
    """
    Resolver for officer AFSCs.

    Resolution: specific_afsc (or career_group + functional_area) -> shredout
    (11BX -> A for 11BXA)
    """

    base_keys = (("specific_afsc",), ("career_group", "functional_area"))
    descent = ("shredout",)

    def __init__(self, lookup: Lookup = None, tree: Optional[ReferenceTree] = None,
                 allow_trailing_input: bool = False, qualification_levels: Optional[str] = None):
        self.qualification_levels = qualification_levels
        super().__init__(lookup, tree, allow_trailing_input)

    @property
    def family(self) -> str:
        return "officer"

    def _build_grammar(self) -> Grammar:
        if self.qualification_levels:
            return OFFICER.with_pattern("level", char_class(self.qualification_levels))
        return OFFICER


class ReportingIdentifierResolver(BaseResolver):
    """
    Resolver for reporting and special duty identifiers.

    Resolution: career_field -> identifier -> suffix
    (8G -> 000 -> B for 8G000B). A career field alone does not name an RI.
    """

    base_keys = (("career_field",),)
    descent = ("identifier", "suffix")
    required_depth = 2

    @property
    def family(self) -> str:
        return "ri"

    def _build_grammar(self) -> Grammar:
        return REPORTING_IDENTIFIER


class ResolverRegistry:
    """
    Registry coordinating the family resolvers.

    ``find`` returns the first family that resolves a code, in registration
    order; ``search`` concatenates every family's results.
    """

    def __init__(
        self,
        lookup: Lookup = None,
        allow_trailing_input: bool = False,
        enlisted_skill_levels: Optional[str] = None,
        officer_qualification_levels: Optional[str] = None,
    ):
        self.lookup = lookup
        self._resolvers: Dict[str, BaseResolver] = {}
        self._register_default_resolvers(
            allow_trailing_input, enlisted_skill_levels, officer_qualification_levels
        )

    @classmethod
    def from_config(cls, root: Optional[Path] = None) -> "ResolverRegistry":
        """Build a registry from .gov_codes/config.yaml under root."""
        from gov_codes.utils.config import (
            get_grammar_config,
            get_lookup_config,
            get_validation_config,
        )
        from gov_codes.utils.repo import find_project_root

        root = root or find_project_root()
        lookup_config = get_lookup_config(root)
        grammar_config = get_grammar_config(root)
        validation_config = get_validation_config(root)

        return cls(
            lookup=lookup_config["paths"],
            allow_trailing_input=validation_config["allow_trailing_input"],
            enlisted_skill_levels=grammar_config["enlisted_skill_levels"],
            officer_qualification_levels=grammar_config["officer_qualification_levels"],
        )

    def _register_default_resolvers(
        self,
        allow_trailing_input: bool,
        enlisted_skill_levels: Optional[str],
        officer_qualification_levels: Optional[str],
    ) -> None:
        """Register the three families in priority order."""
        resolvers = [
            EnlistedResolver(
                self.lookup,
                allow_trailing_input=allow_trailing_input,
                skill_levels=enlisted_skill_levels,
            ),
            OfficerResolver(
                self.lookup,
                allow_trailing_input=allow_trailing_input,
                qualification_levels=officer_qualification_levels,
            ),
            ReportingIdentifierResolver(self.lookup, allow_trailing_input=allow_trailing_input),
        ]
        for resolver in resolvers:
            self._resolvers[resolver.family] = resolver

    def register(self, resolver: BaseResolver) -> None:
        """Register a custom resolver (replaces one of the same family)."""
        self._resolvers[resolver.family] = resolver

    def get_resolver(self, family: str) -> Optional[BaseResolver]:
        """Get resolver for a specific family."""
        return self._resolvers.get(family)

    @property
    def families(self) -> List[str]:
        """Registered family names in priority order."""
        return list(self._resolvers.keys())

    def find(self, code: Optional[str]) -> Optional[ResolvedCode]:
        for resolver in self._resolvers.values():
            resolved = resolver.find(code)
            if resolved is not None:
                return resolved
        return None

    def diagnose(self, code: Optional[str]) -> Dict[str, CodeResolution]:
        """Per-family lookup outcome for a code."""
        return {family: resolver.diagnose(code) for family, resolver in self._resolvers.items()}

    def search(self, prefix: Optional[str]) -> List[ResolvedCode]:
        results: List[ResolvedCode] = []
        for resolver in self._resolvers.values():
            results.extend(resolver.search(prefix))
        return results

    def reload(self, lookup: Lookup = None) -> None:
        """Reload every family, optionally from a new lookup path."""
        if lookup is not None:
            self.lookup = lookup
        for resolver in self._resolvers.values():
            resolver.reload(lookup)

    def data(self, family: str, lookup: Lookup = None) -> Dict[str, Any]:
        resolver = self._resolvers.get(family)
        if resolver is None:
            raise KeyError(f"No resolver registered for family: {family}")
        return resolver.data(lookup)
