"""
Shared fixtures for gov_codes tests.

Reference data fixtures write YAML documents into temporary lookup
directories laid out the way the loader expects:
``<dir>/gov_codes/afsc/<family>.yml``.
"""
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from gov_codes.afsc.resolver import (
    EnlistedResolver,
    OfficerResolver,
    ReportingIdentifierResolver,
    ResolverRegistry,
)


ENLISTED_TEST_YAML = """
9Z:
  name: Test Operations
  subcategories:
    0X1:
      name: Test Operations Group
      subcategories:
        A:
          name: Test Operations Apprentice
"""

OFFICER_TEST_YAML = """
11B:
  name: Test Operations Officer
"""

RI_TEST_YAML = """
9Z:
  name: Test Special Duty
  subcategories:
    000: Test identifier zero
    100: Test identifier one
    200:
      name: Test identifier two
      subcategories:
        A: Test suffix A
        B: Test suffix B
"""


@pytest.fixture
def make_lookup(tmp_path) -> Callable[..., Path]:
    """
    Factory writing reference documents into a fresh lookup directory.

    Usage:
        lookup_dir = make_lookup(enlisted="1A:\\n  name: Test")
    """
    counter = {"n": 0}

    def _make(**documents: str) -> Path:
        counter["n"] += 1
        lookup_dir = tmp_path / f"lookup{counter['n']}"
        data_dir = lookup_dir / "gov_codes" / "afsc"
        data_dir.mkdir(parents=True)
        for family, content in documents.items():
            (data_dir / f"{family}.yml").write_text(textwrap.dedent(content), encoding="utf-8")
        return lookup_dir

    return _make


@pytest.fixture
def overlay_lookup(make_lookup) -> Path:
    """Lookup directory holding small test documents for all three families."""
    return make_lookup(
        enlisted=ENLISTED_TEST_YAML,
        officer=OFFICER_TEST_YAML,
        ri=RI_TEST_YAML,
    )


@pytest.fixture(scope="module")
def enlisted() -> EnlistedResolver:
    """Enlisted resolver over the shipped data."""
    return EnlistedResolver()


@pytest.fixture(scope="module")
def officer() -> OfficerResolver:
    """Officer resolver over the shipped data."""
    return OfficerResolver()


@pytest.fixture(scope="module")
def ri() -> ReportingIdentifierResolver:
    """Reporting identifier resolver over the shipped data."""
    return ReportingIdentifierResolver()


@pytest.fixture(scope="module")
def registry() -> ResolverRegistry:
    """Registry over the shipped data with default settings."""
    return ResolverRegistry()
