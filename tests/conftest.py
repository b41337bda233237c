# Copyright (c) 2025 BasisFES Development Team
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration and fixtures for BasisFES tests."""

import logging
import sys
from pathlib import Path

import numpy as np
import pytest

TESTS_ROOT = Path(__file__).resolve().parent
SRC_ROOT = TESTS_ROOT.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from basisfes.config import BasisConfig, GridConfig, normalize_config  # noqa: E402
from basisfes.basis.model import BiasModel  # noqa: E402

# Folder -> default markers that should apply to every test collected under it.
FOLDER_MARKERS = {
    "tests/unit/basis/": ["unit", "basis"],
    "tests/unit/grid/": ["unit", "grid"],
    "tests/unit/methods/": ["unit", "methods"],
    "tests/unit/parallel/": ["unit", "parallel"],
    "tests/unit/reporting/": ["unit", "reporting"],
    "tests/unit/simulation/": ["unit", "simulation"],
    "tests/unit/utils/": ["unit", "utils"],
    "tests/unit/config/": ["unit", "config"],
    "tests/integration/": ["integration"],
}


def _normalize_path(path: Path) -> str:
    """Return a forward-slash path for prefix matching."""
    return str(path).replace("\\", "/")


def _apply_folder_markers(item: pytest.Item) -> None:
    """Attach default markers based on the test file location."""
    normalized = _normalize_path(Path(str(item.fspath)))
    applied: set[str] = set()
    for folder, markers in FOLDER_MARKERS.items():
        if folder in normalized:
            for marker in markers:
                if marker not in applied:
                    item.add_marker(getattr(pytest.mark, marker))
                    applied.add(marker)


def _parse_focus_option(raw: str) -> set[str]:
    return {chunk.strip() for chunk in raw.split(",") if chunk.strip()}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--focus",
        action="store",
        default="",
        help="Comma-separated domain markers (e.g. basis,methods). Only matching tests run.",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    focus = _parse_focus_option(config.getoption("--focus"))
    deselected: list[pytest.Item] = []
    selected: list[pytest.Item] = []

    for item in items:
        _apply_folder_markers(item)
        if not focus:
            continue
        tags = {mark.name for mark in item.iter_markers()}
        if focus.intersection(tags) or "all" in focus:
            selected.append(item)
        else:
            deselected.append(item)

    if focus and deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = selected


def pytest_configure(config: pytest.Config) -> None:
    """Register the folder markers so ``--strict-markers`` runs stay quiet."""
    names = {m for markers in FOLDER_MARKERS.values() for m in markers}
    for name in sorted(names):
        config.addinivalue_line("markers", f"{name}: tests under the {name} area")


@pytest.fixture(autouse=True)
def _basisfes_log_level(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="basisfes")


def make_config(
    *,
    lower=(-1.0,),
    upper=(1.0,),
    num_points=(10,),
    periodic=None,
    orders=(4,),
    **kwargs,
) -> BasisConfig:
    grid = GridConfig(
        lower=lower,
        upper=upper,
        num_points=num_points,
        periodic=periodic if periodic is not None else (),
    )
    return BasisConfig(grid=grid, polynomial_orders=orders, **kwargs)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def config_1d(tmp_path: Path) -> BasisConfig:
    return make_config(update_period=10, output_dir=tmp_path)


@pytest.fixture
def config_2d(tmp_path: Path) -> BasisConfig:
    return make_config(
        lower=(-1.0, 0.0),
        upper=(1.0, 2.0),
        num_points=(6, 5),
        orders=(3, 2),
        update_period=30,
        output_dir=tmp_path,
    )


@pytest.fixture
def model_1d(config_1d: BasisConfig) -> BiasModel:
    return BiasModel.from_config(normalize_config(config_1d, 1))


@pytest.fixture
def model_2d(config_2d: BasisConfig) -> BiasModel:
    return BiasModel.from_config(normalize_config(config_2d, 2))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
