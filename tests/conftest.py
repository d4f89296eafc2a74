"""Shared pytest fixtures for the Paper Maps test suite."""

from __future__ import annotations

from typing import Any

import pytest

from tests.factories import make_collection, make_feature


@pytest.fixture()
def feature() -> dict[str, Any]:
    """A valid Polygon feature with a couple of optional properties."""
    return make_feature(
        series="Superwalker XT25",
        color="#1a2B3c",
        url="https://www.harveymaps.co.uk/acatalog/cairngorms.html",
    )


@pytest.fixture()
def collection(feature: dict[str, Any]) -> dict[str, Any]:
    """A two-feature collection: a polygon and a point."""
    return make_collection(
        feature,
        make_feature(
            title="Ben Nevis",
            geometry={"type": "Point", "coordinates": [-5.0, 56.8]},
        ),
    )
