"""Host-neutral spec execution.

This module holds the execution sequencing policy for a flattened
list of specs: suite `before`/`after` hooks fire once around the
specs of each suite, `before_each`/`after_each` hooks fire around
every executable spec, pending specs are skipped without running
any hook. Outcomes are handed to a reporting sink exactly once.

Spec bodies and hooks may end with pytest's own outcome exceptions:
`pytest.fail()` is a failure, `pytest.skip()` and `pytest.xfail()`
skip the spec. `pytest.exit()`, `KeyboardInterrupt` and `SystemExit`
abort the run.
"""

from typing import TYPE_CHECKING

import pytest

from pytest_nest.errors import HookError
from pytest_nest.models import SpecReport

from .hooks import plan_hooks, run_hooks, suite_hooks
from .suite import Executable, Pending

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pytest_nest.models import Outcome

    from .suite import Spec, Suite

#: Reporting sink receiving one report per spec.
type Reporter = Callable[[SpecReport], object]

#: Exceptions ending a spec without aborting the run.
OUTCOMES = (Exception, pytest.fail.Exception, pytest.skip.Exception)

#: Exceptions raised by suite setup and teardown hooks.
HOOK_OUTCOMES = (HookError, pytest.skip.Exception)


def run_spec(spec: 'Spec') -> None:
    """Run a single executable spec with its per-spec hooks.

    `before_each` hooks run from the outermost suite inwards; a failure
    aborts the remaining setup and the body. `after_each` hooks always
    run, innermost first, whatever happened before.

    Args:
        spec: Spec to run.

    Raises:
        HookError: If a `before_each` or `after_each` hook fails.
        Exception: Whatever the spec body raises, unchanged.
    """
    match spec.block:
        case Executable(body):
            plan = plan_hooks(spec)
            try:
                run_hooks(plan.before_each)
                body()
            finally:
                run_hooks(plan.after_each, exhaustive=True)
        case Pending():
            return


class SpecRunner:
    """Runner of a flattened spec list.

    Suites are opened lazily right before the first executable spec
    beneath them and closed right after the last spec beneath them.
    A failed `before` is remembered and reported for every later spec
    of that suite; its `after` hooks still run when it closes.

    Pending specs are always reported as skipped. When closing suites
    after a pending spec makes an `after` hook fail, the failure gets
    a report of its own, attributed to the suite owning the hook.
    """

    def __init__(self, reporter: 'Reporter | None' = None) -> None:
        """Initialize a runner.

        Args:
            reporter: Optional sink called with every `SpecReport`.
        """
        self.reporter = reporter
        self.stack: list[tuple[Suite, BaseException | None]] = []

    def run(self, specs: 'Sequence[Spec]') -> list[SpecReport]:
        """Run specs in order.

        Args:
            specs: Specs in tree order, usually from `Suite.collect_specs()`.

        Returns:
            Reports in order: one per spec, plus one per teardown
            failure following a pending spec.
        """
        reports = []
        for position, spec in enumerate(specs):
            following = specs[position + 1] if position + 1 < len(specs) else None
            for report in self.run_one(spec, following):
                if self.reporter is not None:
                    self.reporter(report)
                reports.append(report)

        return reports

    def run_one(self, spec: 'Spec', following: 'Spec | None' = None) -> list[SpecReport]:
        """Run one spec and close the suites the next spec is not part of.

        Args:
            spec: Spec to run.
            following: Next spec of the run, `None` for the last one.

        Returns:
            Report of the spec, followed by a teardown report if the
            spec is pending and closing its suites failed.
        """
        if spec.pending:
            reports = [self.report(spec.path, 'skipped', message=getattr(spec.block, 'reason', None))]
            try:
                self.close(following)
            except HOOK_OUTCOMES as error:
                path = error.path if isinstance(error, HookError) else spec.suite.path
                reports.append(self.report(path or (), self.classify(error), error=error))

            return reports

        error: BaseException | None = None
        try:
            self.open(spec.suite)
            run_spec(spec)
        except OUTCOMES as base:
            error = base

        try:
            self.close(following)
        except HOOK_OUTCOMES as base:
            if error is None:
                error = base
            else:
                error.add_note(str(base))

        if error is not None:
            return [self.report(spec.path, self.classify(error), error=error)]

        return [self.report(spec.path, 'passed')]

    def open(self, suite: 'Suite') -> None:
        """Open a suite and its unopened ancestors, outermost first.

        Raises:
            HookError: The failure of a `before` hook, now or cached
                from an earlier spec.
            pytest.skip.Exception: A skip raised by a `before` hook.
        """
        opened = dict(self.stack)

        for item in reversed(suite.ancestry):
            if item in opened:
                if (failure := opened[item]) is not None:
                    raise failure
                continue

            try:
                run_hooks(suite_hooks(item, 'before'))
            except HOOK_OUTCOMES as error:
                self.stack.append((item, error))
                raise

            self.stack.append((item, None))

    def close(self, following: 'Spec | None' = None) -> None:
        """Close opened suites the following spec does not belong to.

        Suites close innermost first; all of them close even if an
        `after` hook fails.

        Raises:
            HookError: The first `after` hook failure.
            pytest.skip.Exception: A skip raised by an `after` hook,
                if no hook failed.
        """
        failure: BaseException | None = None

        while self.stack:
            suite, _ = self.stack[-1]
            if following is not None and suite.contains(following):
                break

            self.stack.pop()
            try:
                run_hooks(suite_hooks(suite, 'after'), exhaustive=True)
            except HOOK_OUTCOMES as error:
                if failure is None or (not isinstance(failure, HookError) and isinstance(error, HookError)):
                    failure = error
                elif isinstance(error, HookError):
                    failure.add_note(str(error))

        if failure is not None:
            raise failure

    @staticmethod
    def classify(error: BaseException) -> 'Outcome':
        """Map an exception ending a spec to its outcome."""
        if isinstance(error, (pytest.skip.Exception, pytest.xfail.Exception)):
            return 'skipped'

        return 'failed'

    @staticmethod
    def report(path: tuple[str, ...], outcome: 'Outcome', *,
               message: str | None = None,
               error: BaseException | None = None) -> SpecReport:
        """Build a report for a spec or a suite teardown."""
        if error is not None and message is None:
            message = str(error) or type(error).__name__

        return SpecReport(
            path=path,
            outcome=outcome,
            message=message,
            error=error,
        )
