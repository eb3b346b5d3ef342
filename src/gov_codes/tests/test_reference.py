"""
Reference data loading and tree construction.

Purpose: Reference documents are discovered under every lookup directory,
merged last-wins per top-level key and built into immutable Leaf/Node
trees. Malformed documents are skipped without aborting the load.

Run: pytest src/gov_codes/tests/test_reference.py
"""
import logging

import pytest

from gov_codes.afsc.reference import (
    BUNDLED_ROOT,
    Leaf,
    Node,
    ReferenceShapeError,
    ReferenceSource,
    ReferenceTree,
    build_entry,
    build_tree,
    data,
    document_paths,
    load_documents,
)
from gov_codes.afsc.resolver import EnlistedResolver, ReportingIdentifierResolver


# ============================================================================
# Entry construction
# ============================================================================


@pytest.mark.reference
def test_string_value_builds_leaf():
    assert build_entry("C-5 flight engineer") == Leaf("C-5 flight engineer")


@pytest.mark.reference
def test_mapping_value_builds_node_with_children():
    """
    Given: A raw mapping with a name and nested subcategories
    When: Building the entry
    Then: A Node is returned whose children are built recursively
    """
    entry = build_entry({
        "name": "Mobility force aviator",
        "subcategories": {"A": "C-5 flight engineer", "B": {"name": "C-5 loadmaster"}},
    })

    assert isinstance(entry, Node)
    assert entry.name == "Mobility force aviator"
    assert entry.children["A"] == Leaf("C-5 flight engineer")
    assert isinstance(entry.children["B"], Node)
    assert entry.children["B"].name == "C-5 loadmaster"
    assert dict(entry.children["B"].children) == {}


@pytest.mark.reference
def test_node_without_name_or_children():
    """
    Given: A raw mapping with an empty subcategories value
    When: Building the entry
    Then: The Node has no name and no children
    """
    entry = build_entry({"subcategories": ""})

    assert entry.name is None
    assert len(entry.children) == 0


@pytest.mark.reference
@pytest.mark.parametrize("raw", [
    ["not", "a", "mapping"],
    42,
    {"name": ["list"]},
    {"name": "Bad", "subcategories": ["A", "B"]},
    "",
    {"name": ""},
    {"name": "Aircrew", "children": {"1X2": "Mobility force aviator"}},
    {"200": "Direct"},
    {"name": "Aircrew", "subcategories": {"1X2": ""}},
])
def test_incompatible_shapes_raise(raw):
    """
    Given: A raw value that is neither a non-empty name nor a node mapping
           with only name and subcategories keys
    When: Building the entry
    Then: ReferenceShapeError is raised
    """
    with pytest.raises(ReferenceShapeError):
        build_entry(raw, "1A")


@pytest.mark.reference
def test_children_are_read_only():
    entry = build_entry({"name": "Node", "subcategories": {"A": "Leaf"}})

    with pytest.raises(TypeError):
        entry.children["B"] = Leaf("Other")


# ============================================================================
# Tree construction
# ============================================================================


@pytest.mark.reference
def test_build_tree_merges_last_wins():
    """
    Given: Two documents sharing a top-level key
    When: Building a tree from both
    Then: The later document's entry replaces the earlier one
    """
    tree = build_tree([
        {"1A": "First", "1B": "Kept"},
        {"1A": {"name": "Second"}},
    ])

    assert isinstance(tree, ReferenceTree)
    assert len(tree) == 2
    assert tree.get("1A").name == "Second"
    assert tree.get("1B") == Leaf("Kept")
    assert "1C" not in tree


@pytest.mark.reference
def test_build_tree_skips_malformed_documents(caplog):
    """
    Given: A valid document, a non-mapping document and a structurally invalid one
    When: Building the tree
    Then: Only the valid document contributes, with a warning per skipped document
    """
    with caplog.at_level(logging.WARNING, logger="gov_codes.afsc.reference"):
        tree = build_tree([
            {"1A": "Aircrew operations"},
            ["a", "list"],
            {"1B": {"name": "Cyber", "subcategories": 7}},
        ])

    assert list(tree.entries) == ["1A"]
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 2


@pytest.mark.reference
def test_build_tree_skips_empty_names_and_unknown_keys(caplog):
    """
    Given: Documents with an empty leaf name, a node using an unknown key and
           a nameless mapping holding codes directly
    When: Building the tree
    Then: Each document is skipped with a warning and none of its codes resolve
    """
    with caplog.at_level(logging.WARNING, logger="gov_codes.afsc.reference"):
        tree = build_tree([
            {"1A": {"name": "Aircrew", "subcategories": {"1X2": ""}}},
            {"9Z": {"name": "RI", "children": {"200": "Chief"}}},
            {"9Y": {"200": "Direct"}},
        ])

    assert len(tree) == 0
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3
    assert EnlistedResolver(tree=tree).find("1A1X2") is None
    assert ReportingIdentifierResolver(tree=tree).find("9Z200") is None
    assert ReportingIdentifierResolver(tree=tree).find("9Y200") is None


@pytest.mark.reference
def test_empty_tree():
    tree = build_tree([])

    assert len(tree) == 0
    assert tree.get("1A") is None


# ============================================================================
# Discovery and loading
# ============================================================================


@pytest.mark.reference
def test_shipped_data_is_found_under_bundled_root():
    paths = document_paths("enlisted", [BUNDLED_ROOT])

    assert len(paths) == 1
    assert paths[0].name == "enlisted.yml"


@pytest.mark.reference
@pytest.mark.parametrize("lookup", [None, []])
def test_empty_lookup_loads_nothing(lookup):
    """
    Given: No lookup directories
    When: Loading documents with the raw loader
    Then: Nothing is loaded
    """
    assert load_documents("enlisted", lookup) == []
    assert data("enlisted", lookup) == {}


@pytest.mark.reference
def test_base_loader_keeps_identifier_keys_as_text():
    """
    Given: The shipped RI data with identifiers like 000 and 100
    When: Loading it
    Then: Keys stay as their literal text
    """
    ri = data("ri", [BUNDLED_ROOT])

    assert "000" in ri["8G"]["subcategories"]
    assert "100" in ri["8A"]["subcategories"]


@pytest.mark.reference
def test_lookup_directories_overlay_shipped_data(make_lookup):
    """
    Given: Two lookup directories with enlisted documents
    When: Loading enlisted data
    Then: Shipped keys remain, new keys are added and later directories win
    """
    first = make_lookup(enlisted="9Z:\n  name: First\n9Y: Only first\n")
    second = make_lookup(enlisted="9Z:\n  name: Second\n")

    merged = data("enlisted", [first, second])

    assert merged["9Z"]["name"] == "Second"
    assert merged["9Y"] == "Only first"
    assert merged["1A"]["name"] == "Aircrew operations"


@pytest.mark.reference
def test_invalid_yaml_is_skipped(make_lookup, caplog):
    """
    Given: A lookup directory whose enlisted file is not valid YAML
    When: Loading enlisted data
    Then: The file is skipped with a warning and shipped data remains
    """
    broken = make_lookup(enlisted="1A: [unclosed\n  name: :\n")

    with caplog.at_level(logging.WARNING, logger="gov_codes.afsc.reference"):
        merged = data("enlisted", [broken])

    assert merged["1A"]["name"] == "Aircrew operations"
    assert any("Skipping unreadable" in r.getMessage() for r in caplog.records)


@pytest.mark.reference
def test_empty_and_non_mapping_files_are_skipped(make_lookup):
    empty = make_lookup(enlisted="")
    listing = make_lookup(enlisted="- 1A\n- 1B\n")

    merged = data("enlisted", [empty, listing])

    assert merged["1A"]["name"] == "Aircrew operations"
    assert "1B" in merged


@pytest.mark.reference
def test_data_leaves_out_documents_the_tree_skips(make_lookup, caplog):
    """
    Given: An overlay enlisted document with a malformed entry
    When: Reading merged data and building the resolver tree from the same lookup
    Then: Neither shows the overlay keys, and the skip is logged
    """
    overlay = make_lookup(enlisted="9Z:\n  name: Test\n9Y:\n  children:\n    0X1: Orphan\n")

    with caplog.at_level(logging.WARNING, logger="gov_codes.afsc.reference"):
        merged = data("enlisted", [overlay])
        tree = ReferenceSource("enlisted", [overlay]).tree

    assert "9Z" not in merged
    assert "9Y" not in merged
    assert "9Z" not in tree
    assert merged["1A"]["name"] == "Aircrew operations"
    assert set(merged) == set(tree.entries)
    assert any("unexpected keys children" in r.getMessage() for r in caplog.records)


@pytest.mark.reference
def test_nonexistent_directories_are_ignored(tmp_path):
    missing = tmp_path / "does-not-exist"

    paths = document_paths("officer", [missing])

    assert [p.name for p in paths] == ["officer.yml"]


@pytest.mark.reference
def test_duplicate_directories_are_visited_once(make_lookup):
    lookup_dir = make_lookup(officer="99ZX: Test\n")

    paths = document_paths("officer", [lookup_dir, lookup_dir, BUNDLED_ROOT])

    assert len(paths) == 2


# ============================================================================
# ReferenceSource
# ============================================================================


@pytest.mark.reference
def test_source_defaults_to_shipped_data():
    source = ReferenceSource("enlisted")

    assert source.lookup == [BUNDLED_ROOT]
    assert "1A" in source.tree


@pytest.mark.reference
def test_source_reload_swaps_whole_tree(make_lookup):
    """
    Given: A source that has already built its tree
    When: Reloading it from an overlay directory
    Then: A new tree object holds the overlay and the old tree is untouched
    """
    source = ReferenceSource("ri")
    before = source.tree

    after = source.reload([make_lookup(ri="9Z:\n  name: Test\n")])

    assert after is source.tree
    assert after is not before
    assert "9Z" in after
    assert "9Z" not in before
    assert "8G" in after


@pytest.mark.reference
def test_source_replace_requires_tree():
    source = ReferenceSource("ri", tree=ReferenceTree())

    with pytest.raises(TypeError):
        source.replace({"9Z": "not a tree"})

    source.replace(build_tree([{"9Z": "Replaced"}]))
    assert source.tree.get("9Z") == Leaf("Replaced")
