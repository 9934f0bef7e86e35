"""Pytest plugin for nested, Jasmine-style spec declarations.

The `pytest_nest` package lets tests be declared as a tree of suites
and specs with `describe`/`it`, their focused (`fdescribe`/`fit`) and
pending (`xdescribe`/`xit`) variants, and scoped lifecycle hooks
(`before`, `after`, `before_each`, `after_each`).

Key features:
- lazy, depth-first evaluation of nested declarations into a suite tree;
- per-level focus overrides and pending declarations;
- correctly nested hook ordering, outer setup first, inner teardown first;
- collection as regular pytest items, plus a host-neutral runner.
"""

from pytest_nest.core import SuiteBuilder

__all__ = (
    'SuiteBuilder',
)
