"""Hook execution planning.

For a given spec, the planner walks the suite ancestor chain and
derives the ordered hook sequences to run around it: setup hooks run
from the outermost suite inwards, teardown hooks from the innermost
suite outwards.
"""

from typing import TYPE_CHECKING, NamedTuple

import pytest

from pytest_nest.errors import HookError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .suite import HookKind, Invokable, Spec, Suite


class Hook(NamedTuple):
    """Hook body together with the suite and category it belongs to."""

    kind: 'HookKind'
    suite: 'Suite'
    body: 'Invokable'

    def __call__(self) -> None:
        """Invoke the hook body, wrapping failures into `HookError`.

        Raises:
            HookError: If the hook body raises or calls `pytest.fail()`.
            pytest.skip.Exception: If the hook body calls `pytest.skip()`.
        """
        try:
            self.body()

        except HookError:
            raise

        except (Exception, pytest.fail.Exception) as base:
            raise HookError.from_exception(
                base,
                hook=self.kind,
                path=self.suite.path,
            ) from base


class HookPlan(NamedTuple):
    """Ordered hook sequences to run around one spec."""

    before: tuple[Hook, ...]
    before_each: tuple[Hook, ...]
    after_each: tuple[Hook, ...]
    after: tuple[Hook, ...]


def suite_hooks(suite: 'Suite', kind: 'HookKind') -> tuple[Hook, ...]:
    """Wrap the hooks declared directly in a suite."""
    return tuple(Hook(kind, suite, body) for body in getattr(suite, kind))


def collect_hooks(suite: 'Suite', kind: 'HookKind', *,
                  outer_first: bool) -> tuple[Hook, ...]:
    """Collect hooks of one category along the ancestor chain.

    Args:
        suite: Innermost suite of the chain.
        kind: Hook category.
        outer_first: Order from the root down to `suite` if set,
            otherwise from `suite` up to the root.

    Returns:
        Flattened hooks; each suite keeps its own declaration order.
    """
    chain = suite.ancestry
    if outer_first:
        chain = tuple(reversed(chain))

    return tuple(
        hook
        for item in chain
        for hook in suite_hooks(item, kind)
    )


def plan_hooks(spec: 'Spec') -> HookPlan:
    """Compute the hook sequences surrounding a spec.

    Args:
        spec: Spec to plan.

    Returns:
        `before` and `before_each` ordered root to leaf,
        `after_each` and `after` ordered leaf to root.
    """
    return HookPlan(
        before=collect_hooks(spec.suite, 'before', outer_first=True),
        before_each=collect_hooks(spec.suite, 'before_each', outer_first=True),
        after_each=collect_hooks(spec.suite, 'after_each', outer_first=False),
        after=collect_hooks(spec.suite, 'after', outer_first=False),
    )


def run_hooks(hooks: 'Iterable[Hook]', *, exhaustive: bool = False) -> None:
    """Run hooks in order.

    Args:
        hooks: Hooks to run.
        exhaustive: Keep running after a failure. Used for teardown,
            where every hook must get a chance to release its resources.

    Raises:
        HookError: The first hook failure. With `exhaustive`, later
            failures are attached to it as notes.
        pytest.skip.Exception: If a hook skips and nothing failed before.
    """
    failure: HookError | pytest.skip.Exception | None = None

    for hook in hooks:
        try:
            hook()

        except (HookError, pytest.skip.Exception) as error:
            if not exhaustive:
                raise
            if failure is None or (isinstance(failure, pytest.skip.Exception) and isinstance(error, HookError)):
                failure = error
            elif isinstance(error, HookError):
                failure.add_note(f'{error.message} at {error.format_path(error.path or ())}')

    if failure is not None:
        raise failure
