"""Pytest collectors mirroring the realized suite tree.

Every suite becomes a collector node; pytest's setup state then runs
the suite `before` hooks when the first selected spec beneath it is
set up and the `after` hooks once the last one is torn down.
"""

from functools import cached_property
from typing import TYPE_CHECKING

import pytest

from pytest_nest.core import Suite, SuiteEvaluator, evaluate_entrypoint
from pytest_nest.core.hooks import run_hooks, suite_hooks
from pytest_nest.errors import DuplicateDeclarationError, ErrorContext, NestError

from .item import SpecItem

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from _pytest._code.code import ExceptionInfo, TerminalRepr

    from pytest_nest.core.loader import EntryPoint


class SuiteCollector(pytest.Collector):
    """Pytest collector for one realized suite."""

    suite: Suite

    def __init__(self, *, suite: Suite | None = None, **kwargs: 'Any') -> None:
        """Initialize a suite collector.

        Args:
            suite: Realized suite; subclasses may provide it lazily.
            **kwargs: Keyword pytest.Collector arguments.
        """
        super().__init__(**kwargs)

        if suite is not None:
            self.suite = suite

    def collect(self) -> 'Iterable[SuiteCollector | SpecItem]':
        """Collect child suites and specs in declaration order.

        Raises:
            DuplicateDeclarationError: If a child suite and a spec share
                a description and hence a node id.
        """
        names = {spec.description for spec in self.suite.specs}
        for child in self.suite.suites:
            if child.description in names:
                raise DuplicateDeclarationError(
                    f'Suite and spec with description {child.description!r} '
                    'can not share a node id',
                    context=ErrorContext(
                        filename=f'{self.path}',
                        path=self.suite.path,
                        description=child.description,
                    ),
                )

        for child in self.suite.children:
            if isinstance(child, Suite):
                yield SuiteCollector.from_parent(
                    self,
                    name=child.description,
                    suite=child,
                )
            else:
                yield SpecItem.from_parent(
                    self,
                    name=child.description,
                    spec=child,
                )

    def setup(self) -> None:
        """Run the suite `before` hooks."""
        run_hooks(suite_hooks(self.suite, 'before'))

    def teardown(self) -> None:
        """Run the suite `after` hooks."""
        run_hooks(suite_hooks(self.suite, 'after'), exhaustive=True)

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]') -> 'str | TerminalRepr':
        """Render library errors without the internal traceback."""
        if isinstance(excinfo.value, NestError):
            return str(excinfo.value)

        return super().repr_failure(excinfo)


class RootCollector(SuiteCollector):
    """Pytest collector for one declaration entry point.

    The entry point is evaluated lazily, on collection, so a broken
    declaration only fails the collection of its own tree.
    """

    def __init__(self, *, entrypoint: 'EntryPoint', **kwargs: 'Any') -> None:
        """Initialize an entry point collector.

        Args:
            entrypoint: Function performing the outermost declarations.
            **kwargs: Keyword pytest.Collector arguments.
        """
        super().__init__(**kwargs)

        self.entrypoint = entrypoint

    @cached_property
    def suite(self) -> Suite:  # type: ignore[override]
        """Realized root suite of the entry point."""
        evaluator = SuiteEvaluator(
            forbid_focus=self.config.nest_settings.forbid_focus,  # type: ignore[attr-defined]
            filename=f'{self.path}',
        )

        return evaluate_entrypoint(self.entrypoint, evaluator=evaluator)
