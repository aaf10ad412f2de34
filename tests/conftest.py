"""Shared test fixtures for the diffable test suite."""

from __future__ import annotations

import pytest

from diffable.config import DiffableConfig
from diffable.datasource import DiffableDataSource
from diffable.presentation import ListModel


def render(item_id):
    return f"cell:{item_id}"


@pytest.fixture
def config() -> DiffableConfig:
    """Default test configuration."""
    return DiffableConfig()


@pytest.fixture
def model() -> ListModel:
    """In-memory presentation rendering ``cell:<id>`` strings."""
    return ListModel(render)


@pytest.fixture
def source(model: ListModel, config: DiffableConfig) -> DiffableDataSource:
    """Data source bound to the :func:`model` fixture."""
    return DiffableDataSource(model, config)
