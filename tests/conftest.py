"""Shared pytest fixtures for the stabcheck test suite."""

from __future__ import annotations

import pytest

from stabcheck.lattice import numeric_tower


@pytest.fixture
def tower():
    """A fresh numeric tower lattice."""
    return numeric_tower()
