"""Root pytest configuration for all tests.

Provides synthetic HGT tiles written into temporary directories. Large
tiles are session-scoped so each is written once per run.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from domain.terrain.value_objects import Resolution, TileCorner, TileGeometry
from tests.conftest_utils import N38W105_ELEVATION, pattern_grid, write_hgt


@pytest.fixture
def geometry_3s() -> TileGeometry:
    """3-arcsecond geometry for N44W072."""
    return TileGeometry(
        resolution=Resolution.THREE_ARCSECOND,
        corner=TileCorner(latitude=44, longitude=-72),
    )


@pytest.fixture
def geometry_1s() -> TileGeometry:
    """1-arcsecond geometry for N44W072."""
    return TileGeometry(
        resolution=Resolution.ONE_ARCSECOND,
        corner=TileCorner(latitude=44, longitude=-72),
    )


@pytest.fixture(scope="session")
def pattern_3s() -> np.ndarray:
    return pattern_grid(Resolution.THREE_ARCSECOND)


@pytest.fixture(scope="session")
def tile_3s_path(tmp_path_factory: pytest.TempPathFactory, pattern_3s) -> Path:
    """3-arcsecond N44W072.hgt holding pattern_grid()."""
    directory = tmp_path_factory.mktemp("3arcsecond")
    return write_hgt(directory / "N44W072.hgt", pattern_3s)


@pytest.fixture(scope="session")
def n38w105_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """1-arcsecond N38W105.hgt with a flat 3772 m patch around (752, 24)."""
    resolution = Resolution.ONE_ARCSECOND
    data = pattern_grid(resolution)
    data[750:755, 22:27] = N38W105_ELEVATION
    directory = tmp_path_factory.mktemp("1arcsecond")
    return write_hgt(directory / "N38W105.hgt", data)


@pytest.fixture
def hgt_factory(tmp_path: Path) -> Callable[..., Path]:
    """Return a function writing a grid to tmp_path/<name>."""

    def _make(data: np.ndarray, name: str = "N44W072.hgt") -> Path:
        return write_hgt(tmp_path / name, data)

    return _make
