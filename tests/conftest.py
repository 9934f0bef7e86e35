"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from pytest_nest.core import SuiteBuilder, evaluate_entrypoint

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_nest.core import Suite


@pytest.fixture
def builder() -> SuiteBuilder:
    """Provide a fresh, sealed suite builder."""
    return SuiteBuilder()


@pytest.fixture
def calls() -> list[str]:
    """Provide a journal of executed invokables, in execution order."""
    return []


@pytest.fixture
def record(calls: list[str]) -> 'Callable[[str], Callable[[], None]]':
    """Provide a factory of invokables writing their name to the journal.

    Returns:
        A callable producing zero-argument functions that append the
        given name to `calls` when invoked.
    """
    def factory(name: str) -> 'Callable[[], None]':
        def invokable() -> None:
            calls.append(name)

        return invokable

    return factory


@pytest.fixture
def explode(calls: list[str]) -> 'Callable[[str], Callable[[], None]]':
    """Provide a factory of journaled invokables that raise `RuntimeError`."""
    def factory(name: str) -> 'Callable[[], None]':
        def invokable() -> None:
            calls.append(name)
            raise RuntimeError(name)

        return invokable

    return factory


@pytest.fixture
def realize() -> 'Callable[[Callable[[SuiteBuilder], object]], Suite]':
    """Provide a shortcut evaluating an entry point with default settings."""
    def evaluate(entrypoint: 'Callable[[SuiteBuilder], object]') -> 'Suite':
        return evaluate_entrypoint(entrypoint)

    return evaluate
