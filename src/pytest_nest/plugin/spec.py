"""Pytest integration for Python spec modules.

This module defines a custom pytest file collector that imports spec
modules and exposes each declaration entry point found in them as a
tree of suite collectors and spec items.
"""

from typing import TYPE_CHECKING

import pytest

from pytest_nest.core.loader import find_entrypoints, load_module
from pytest_nest.errors import NestError

from .suite import RootCollector

if TYPE_CHECKING:
    from collections.abc import Iterable

    from _pytest._code.code import ExceptionInfo, TerminalRepr


class SpecFile(pytest.File):
    """Pytest file collector for spec modules.

    This collector:
    - imports the spec module;
    - finds its declaration entry points by name;
    - yields one `RootCollector` per entry point, in definition order.
    """

    def collect(self) -> 'Iterable[RootCollector]':
        """Collect entry points from a spec module.

        Returns:
            Iterable of `RootCollector` instances.

        Raises:
            NestError: If the file can not be imported as a module.
        """
        module = load_module(self.path)

        for name, entrypoint in find_entrypoints(module, self.config.nest_settings):  # type: ignore[attr-defined]
            yield RootCollector.from_parent(
                self,
                name=name,
                entrypoint=entrypoint,
            )

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]') -> 'str | TerminalRepr':
        """Render library errors without the internal traceback."""
        if isinstance(excinfo.value, NestError):
            return str(excinfo.value)

        return super().repr_failure(excinfo)
