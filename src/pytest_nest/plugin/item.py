"""Pytest item executing a single spec.

The item runs the spec `before_each` hooks, the spec body and the
`after_each` hooks. Suite-level `before`/`after` hooks are handled
by the enclosing `SuiteCollector` nodes.
"""

from typing import TYPE_CHECKING

import pytest

from pytest_nest.core import Executable, Pending, run_spec

if TYPE_CHECKING:
    from typing import Any

    from pytest_nest.core import Spec


class SpecItem(pytest.Item):
    """Pytest item backed by a realized spec.

    Pending specs are marked as skipped. The skip is raised before any
    collector setup, so a pending spec never triggers a hook.
    """

    def __init__(self, *, spec: 'Spec', **kwargs: 'Any') -> None:
        """Initialize a pytest item for a spec.

        Args:
            spec: Realized spec.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.spec = spec

        if isinstance(spec.block, Pending):
            self.add_marker(pytest.mark.skip(reason=spec.block.reason))

    def runtest(self) -> None:
        """Execute the spec."""
        run_spec(self.spec)

    def reportinfo(self) -> tuple['Any', int, str]:
        """Describe the spec in pytest reports.

        The line is the zero-based first line of the spec body, or
        `0` for pending specs which keep no body.
        """
        lineno = 0
        if isinstance(self.spec.block, Executable):
            code = getattr(self.spec.block.body, '__code__', None)
            if code is not None:
                lineno = code.co_firstlineno - 1

        return self.path, lineno, self.spec.full_description
