"""
Reference data for AFSC resolution.

Reference documents are YAML files found at
``<dir>/gov_codes/afsc/<family>.yml`` for every directory in a lookup path.
The package install root is always searched first, so the shipped data is the
base layer and later directories overlay it (last wins per top-level key).

Each document maps a code segment to either a name or a node:

    1A:
      name: Aircrew operations
      subcategories:
        1X2:
          name: Mobility force aviator
          subcategories:
            A: C-5 flight engineer

which is built into a tree of ``Leaf``/``Node`` entries.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import yaml

logger = logging.getLogger(__name__)

# Directory that contains the gov_codes package (site-packages or src/)
BUNDLED_ROOT = Path(__file__).resolve().parents[2]

DATA_SUBDIR = ("gov_codes", "afsc")

NODE_KEYS = ("name", "subcategories")

# Draft 7 JSON schema for reference documents
SCHEMA_PATH = Path(__file__).with_name("reference.schema.json")


class GovCodesError(Exception):
    """Base exception for gov_codes."""


class ReferenceShapeError(GovCodesError):
    """Raised when a raw reference value is neither a name nor a node mapping."""


@dataclass(frozen=True)
class Leaf:
    """A code segment that only carries a name."""
    name: str


@dataclass(frozen=True)
class Node:
    """A code segment with an (optional) name and nested segments."""
    name: Optional[str] = None
    children: Mapping[str, "ReferenceEntry"] = field(default_factory=dict)


ReferenceEntry = Union[Leaf, Node]


class ReferenceTree:
    """Read-only top-level mapping of a family's reference data."""

    def __init__(self, entries: Optional[Mapping[str, ReferenceEntry]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @property
    def entries(self) -> Mapping[str, ReferenceEntry]:
        return self._entries

    def get(self, key: str) -> Optional[ReferenceEntry]:
        return self._entries.get(key)

    def items(self):
        return self._entries.items()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ReferenceTree({len(self)} entries)"


def build_entry(raw: Any, path: str = "") -> ReferenceEntry:
    """
    Build a reference entry from a raw YAML value.

    Args:
        raw: A name string or a mapping with ``name`` / ``subcategories``
        path: Key path used in error messages

    Raises:
        ReferenceShapeError: If the value has neither shape, a name is empty
            or a mapping carries keys other than ``name`` / ``subcategories``
    """
    where = path or "<root>"

    if isinstance(raw, str):
        if not raw:
            raise ReferenceShapeError(f"{where}: name must not be empty")
        return Leaf(raw)

    if isinstance(raw, dict):
        unknown = sorted(str(key) for key in raw if key not in NODE_KEYS)
        if unknown:
            raise ReferenceShapeError(f"{where}: unexpected keys {', '.join(unknown)}")

        name = raw.get("name")
        if name is not None and not isinstance(name, str):
            raise ReferenceShapeError(f"{where}: name must be a string, got {type(name).__name__}")
        if name == "":
            raise ReferenceShapeError(f"{where}: name must not be empty")

        subcategories = raw.get("subcategories")
        # BaseLoader reads an empty value as ""
        if subcategories in (None, ""):
            subcategories = {}
        if not isinstance(subcategories, dict):
            raise ReferenceShapeError(
                f"{where}: subcategories must be a mapping, got {type(subcategories).__name__}"
            )

        children = {
            str(key): build_entry(value, f"{path}/{key}")
            for key, value in subcategories.items()
        }
        return Node(name=name, children=MappingProxyType(children))

    raise ReferenceShapeError(
        f"{where}: expected a name or a mapping, got {type(raw).__name__}"
    )


def build_document(document: Mapping[str, Any]) -> Dict[str, ReferenceEntry]:
    """Build the top-level entries of a single document."""
    return {str(key): build_entry(value, str(key)) for key, value in document.items()}


def build_tree(documents: Iterable[Any]) -> ReferenceTree:
    """
    Merge raw documents into a reference tree.

    Later documents override earlier ones per top-level key. Documents that
    are not mappings or whose entries are malformed are skipped.
    """
    entries: Dict[str, ReferenceEntry] = {}

    for index, document in enumerate(documents):
        if not isinstance(document, dict):
            logger.warning(
                "Skipping reference document #%d: expected a mapping, got %s",
                index, type(document).__name__,
            )
            continue
        try:
            entries.update(build_document(document))
        except ReferenceShapeError as e:
            logger.warning("Skipping reference document #%d: %s", index, e)

    return ReferenceTree(entries)


def document_paths(family: str, lookup: Optional[Sequence[Union[str, Path]]]) -> List[Path]:
    """
    List existing reference files for a family, in overlay order.

    The bundled root is always first; an empty lookup finds nothing.
    """
    if not lookup:
        return []

    directories = [BUNDLED_ROOT] + [Path(d) for d in lookup]
    paths: List[Path] = []
    seen = set()
    for directory in directories:
        candidate = directory.joinpath(*DATA_SUBDIR, f"{family}.yml")
        try:
            key = candidate.resolve()
        except OSError:
            continue
        if key in seen or not candidate.is_file():
            continue
        seen.add(key)
        paths.append(candidate)

    return paths


def read_document(path: Path) -> Optional[Any]:
    """Read one YAML document, keeping every scalar as its literal text."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.load(f, Loader=yaml.BaseLoader)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Skipping unreadable reference file %s: %s", path, e)
        return None


def load_documents(family: str, lookup: Optional[Sequence[Union[str, Path]]]) -> List[Dict[str, Any]]:
    """Load every mapping-shaped reference document for a family."""
    documents = []
    for path in document_paths(family, lookup):
        document = read_document(path)
        if not document:
            logger.debug("Reference file %s is empty", path)
            continue
        if not isinstance(document, dict):
            logger.warning(
                "Skipping reference file %s: expected a mapping, got %s",
                path, type(document).__name__,
            )
            continue
        logger.debug("Loaded reference file %s (%d entries)", path, len(document))
        documents.append(document)
    return documents


def data(family: str, lookup: Optional[Sequence[Union[str, Path]]]) -> Dict[str, Any]:
    """
    Merged raw data for a family.

    Documents that build_tree would skip are left out, so every top-level
    key shown here is one the resolvers can see.
    """
    merged: Dict[str, Any] = {}
    for document in load_documents(family, lookup):
        try:
            build_document(document)
        except ReferenceShapeError as e:
            logger.warning("Skipping %s reference document: %s", family, e)
            continue
        merged.update(document)
    return merged


class ReferenceSource:
    """
    Holds the reference tree of one family.

    The tree is built on first access. ``reload`` builds a complete new tree
    before swapping it in, so readers always see one whole tree.
    """

    def __init__(
        self,
        family: str,
        lookup: Optional[Sequence[Union[str, Path]]] = None,
        tree: Optional[ReferenceTree] = None,
    ):
        self.family = family
        self.lookup = self._effective_lookup(lookup)
        self._tree = tree
        self._lock = threading.Lock()

    @staticmethod
    def _effective_lookup(lookup: Optional[Sequence[Union[str, Path]]]) -> List[Path]:
        if not lookup:
            return [BUNDLED_ROOT]
        return [Path(d) for d in lookup]

    @property
    def tree(self) -> ReferenceTree:
        tree = self._tree
        if tree is None:
            with self._lock:
                if self._tree is None:
                    self._tree = self._build()
                tree = self._tree
        return tree

    def _build(self) -> ReferenceTree:
        tree = build_tree(load_documents(self.family, self.lookup))
        logger.info("Loaded %s reference data: %d top-level entries", self.family, len(tree))
        return tree

    def reload(self, lookup: Optional[Sequence[Union[str, Path]]] = None) -> ReferenceTree:
        """Rebuild the tree, optionally from a new lookup path."""
        if lookup is not None:
            self.lookup = self._effective_lookup(lookup)
        tree = self._build()
        with self._lock:
            self._tree = tree
        return tree

    def replace(self, tree: ReferenceTree) -> None:
        """Swap in a prebuilt tree."""
        if not isinstance(tree, ReferenceTree):
            raise TypeError(f"Expected ReferenceTree, got {type(tree).__name__}")
        with self._lock:
            self._tree = tree
