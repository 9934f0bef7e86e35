"""Tests for the host-neutral execution sequencing policy."""

from typing import TYPE_CHECKING

import pytest

from pytest_nest.core import SpecRunner, SuiteBuilder, run_spec
from pytest_nest.errors import HookError

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from pytest_nest.core import Suite
    from pytest_nest.models import SpecReport

type Factory = Callable[[str], Callable[[], None]]


def run(root: 'Suite') -> list['SpecReport']:
    """Run a realized tree with a fresh runner."""
    return SpecRunner().run(root.collect_specs())


def outcomes(reports: list['SpecReport']) -> list[tuple[str, str]]:
    """Reduce reports to full descriptions and outcomes."""
    return [(report.full_description, report.outcome) for report in reports]


def test_before_and_after_wrap_the_suite(realize: 'Callable[..., Suite]', calls: list[str],
                                         record: 'Factory') -> None:
    """Fire `before` once before the first spec and `after` once after the last."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.before(record('h1'))
            s.it('a1', record('a1'))
            s.it('a2', record('a2'))
            s.after(record('h2'))

    reports = run(realize(entry))

    assert calls == ['h1', 'a1', 'a2', 'h2']
    assert outcomes(reports) == [('A a1', 'passed'), ('A a2', 'passed')]


def test_nested_hook_ordering(realize: 'Callable[..., Suite]', calls: list[str],
                              record: 'Factory') -> None:
    """Nest setup outer first and teardown inner first across suites."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.before(record('A.before'))
            s.before_each(record('A.before_each'))
            s.after_each(record('A.after_each'))
            s.after(record('A.after'))

            @s.describe('B')
            def _() -> None:
                s.before(record('B.before'))
                s.before_each(record('B.before_each'))
                s.after_each(record('B.after_each'))
                s.after(record('B.after'))

                s.it('b1', record('b1'))
                s.it('b2', record('b2'))

            s.it('a1', record('a1'))

    run(realize(entry))

    assert calls == [
        'A.before', 'B.before',
        'A.before_each', 'B.before_each', 'b1', 'B.after_each', 'A.after_each',
        'A.before_each', 'B.before_each', 'b2', 'B.after_each', 'A.after_each',
        'B.after',
        'A.before_each', 'a1', 'A.after_each',
        'A.after',
    ]


@pytest.mark.parametrize('count', (1, 3))
def test_before_fires_once(realize: 'Callable[..., Suite]', calls: list[str],
                           record: 'Factory', count: int) -> None:
    """Fire suite hooks exactly once whatever the number of specs."""
    def entry(s: SuiteBuilder) -> None:
        s.before(record('before'))
        s.after(record('after'))
        for number in range(count):
            s.it(f'spec {number}', lambda: None)

    run(realize(entry))

    assert calls == ['before', 'after']


def test_pending_specs_run_no_hooks(realize: 'Callable[..., Suite]', calls: list[str],
                                    record: 'Factory') -> None:
    """Skip pending specs without running any hook at any level."""
    def entry(s: SuiteBuilder) -> None:
        s.before(record('root.before'))
        s.before_each(record('root.before_each'))

        @s.describe('A')
        def _() -> None:
            s.before(record('A.before'))
            s.after(record('A.after'))
            s.xit('pending')

        s.xdescribe('B', record('B.body'))

    reports = run(realize(entry))

    assert calls == []
    assert outcomes(reports) == [('A pending', 'skipped'), ('B (pending)', 'skipped')]
    assert reports[0].message == 'pending'


def test_after_fires_after_trailing_pending_spec(realize: 'Callable[..., Suite]', calls: list[str],
                                                 record: 'Factory') -> None:
    """Close a suite after its last spec even when that spec is pending."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.before(record('before'))
            s.after(record('after'))
            s.it('runs', record('runs'))
            s.xit('pending')

        s.it('outside', record('outside'))

    run(realize(entry))

    assert calls == ['before', 'runs', 'after', 'outside']


def test_spec_failure_is_isolated(realize: 'Callable[..., Suite]', calls: list[str],
                                  record: 'Factory', explode: 'Factory') -> None:
    """Report a failing spec, tear it down and carry on with its siblings."""
    def entry(s: SuiteBuilder) -> None:
        s.after_each(record('after_each'))
        s.it('fails', explode('fails'))
        s.it('passes', record('passes'))

    reports = run(realize(entry))

    assert calls == ['fails', 'after_each', 'passes', 'after_each']
    assert outcomes(reports) == [('fails', 'failed'), ('passes', 'passed')]
    assert isinstance(reports[0].error, RuntimeError)
    assert reports[0].message == 'fails'


def test_before_each_failure_skips_body(realize: 'Callable[..., Suite]', calls: list[str],
                                        record: 'Factory', explode: 'Factory') -> None:
    """Abort the setup chain and the body but still run `after_each`."""
    def entry(s: SuiteBuilder) -> None:
        s.before_each(explode('outer setup'))
        s.after_each(record('outer teardown'))

        @s.describe('A')
        def _() -> None:
            s.before_each(record('inner setup'))
            s.it('spec', record('spec'))

    reports = run(realize(entry))

    assert calls == ['outer setup', 'outer teardown']
    assert reports[0].outcome == 'failed'
    assert isinstance(reports[0].error, HookError)


def test_before_failure_fails_suite_specs(realize: 'Callable[..., Suite]', calls: list[str],
                                          record: 'Factory', explode: 'Factory') -> None:
    """Attribute a failing `before` to every spec of its suite and still run `after`."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.before(explode('before'))
            s.after(record('after'))
            s.it('a1', record('a1'))

            @s.describe('B')
            def _() -> None:
                s.before(record('B.before'))
                s.it('b1', record('b1'))

        s.it('outside', record('outside'))

    reports = run(realize(entry))

    assert calls == ['before', 'after', 'outside']
    assert outcomes(reports) == [
        ('A a1', 'failed'),
        ('A B b1', 'failed'),
        ('outside', 'passed'),
    ]
    assert reports[0].error is reports[1].error


def test_after_failure_attributed_to_last_spec(realize: 'Callable[..., Suite]', calls: list[str],
                                               record: 'Factory', explode: 'Factory') -> None:
    """Fail the spec whose completion triggered a failing `after`."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.after(explode('after'))
            s.it('a1', record('a1'))
            s.it('a2', record('a2'))

        s.after(record('root.after'))

    reports = run(realize(entry))

    assert calls == ['a1', 'a2', 'after', 'root.after']
    assert outcomes(reports) == [('A a1', 'passed'), ('A a2', 'failed')]
    assert isinstance(reports[1].error, HookError)


def test_body_and_teardown_failures_are_both_kept(realize: 'Callable[..., Suite]',
                                                  explode: 'Factory') -> None:
    """Keep the body failure and attach a failing `after` to it."""
    def entry(s: SuiteBuilder) -> None:
        s.after(explode('after'))
        s.it('fails', explode('body'))

    report, = run(realize(entry))

    assert str(report.error) == 'body'
    assert 'after' in report.error.__notes__[0]  # type: ignore[union-attr]


def test_reporter_receives_each_report_once(realize: 'Callable[..., Suite]',
                                            mocker: 'MockerFixture') -> None:
    """Hand every report to the sink exactly once, in order."""
    def entry(s: SuiteBuilder) -> None:
        s.it('one', lambda: None)
        s.xit('two')

    reporter = mocker.Mock()
    reports = SpecRunner(reporter).run(realize(entry).collect_specs())

    assert reporter.call_args_list == [mocker.call(report) for report in reports]


def test_run_spec_ignores_pending(realize: 'Callable[..., Suite]', calls: list[str],
                                  record: 'Factory') -> None:
    """Run nothing, not even hooks, for a pending spec."""
    def entry(s: SuiteBuilder) -> None:
        s.before_each(record('before_each'))
        s.xit('pending')

    run_spec(realize(entry).specs[0])

    assert calls == []


def test_pytest_fail_is_a_spec_failure(realize: 'Callable[..., Suite]', calls: list[str],
                                       record: 'Factory') -> None:
    """Report `pytest.fail()` as a failure and carry on with the siblings."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.after_each(record('after_each'))
            s.after(record('after'))

            @s.it('fails')
            def _() -> None:
                pytest.fail('nope')

            s.it('next', record('next'))

    reports = run(realize(entry))

    assert calls == ['after_each', 'next', 'after_each', 'after']
    assert outcomes(reports) == [('A fails', 'failed'), ('A next', 'passed')]
    assert reports[0].message == 'nope'


@pytest.mark.parametrize('outcome', (
    pytest.param(pytest.skip, id='skip'),
    pytest.param(pytest.xfail, id='xfail'),
))
def test_pytest_skip_is_a_skipped_spec(realize: 'Callable[..., Suite]', calls: list[str],
                                       record: 'Factory', outcome: 'Callable[[str], None]') -> None:
    """Report imperative skips as skipped and still tear the spec down."""
    def entry(s: SuiteBuilder) -> None:
        s.after_each(record('after_each'))

        @s.it('skips')
        def _() -> None:
            outcome('not today')

        s.it('next', record('next'))

    reports = run(realize(entry))

    assert calls == ['after_each', 'next', 'after_each']
    assert outcomes(reports) == [('skips', 'skipped'), ('next', 'passed')]
    assert reports[0].message == 'not today'


def test_pytest_fail_in_before_fails_suite(realize: 'Callable[..., Suite]', calls: list[str],
                                           record: 'Factory') -> None:
    """Treat `pytest.fail()` in a suite hook as a hook failure."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.before(lambda: pytest.fail('no database'))
            s.after(record('after'))
            s.it('a1', record('a1'))

        s.it('outside', record('outside'))

    reports = run(realize(entry))

    assert calls == ['after', 'outside']
    assert outcomes(reports) == [('A a1', 'failed'), ('outside', 'passed')]
    assert isinstance(reports[0].error, HookError)


def test_skip_in_before_skips_suite(realize: 'Callable[..., Suite]', calls: list[str],
                                    record: 'Factory') -> None:
    """Skip every spec of a suite whose `before` hook skips."""
    def entry(s: SuiteBuilder) -> None:
        s.before(lambda: pytest.skip('no network'))
        s.after(record('after'))
        s.it('one', record('one'))
        s.it('two', record('two'))

    reports = run(realize(entry))

    assert calls == ['after']
    assert outcomes(reports) == [('one', 'skipped'), ('two', 'skipped')]


def test_teardown_after_pending_spec_is_reported_separately(realize: 'Callable[..., Suite]',
                                                            calls: list[str], record: 'Factory',
                                                            explode: 'Factory') -> None:
    """Keep a trailing pending spec skipped and report the suite teardown failure."""
    def entry(s: SuiteBuilder) -> None:
        @s.describe('A')
        def _() -> None:
            s.after(explode('after'))
            s.it('runs', record('runs'))
            s.xit('pending')

        s.it('outside', record('outside'))

    reports = run(realize(entry))

    assert calls == ['runs', 'after', 'outside']
    assert outcomes(reports) == [
        ('A runs', 'passed'),
        ('A pending', 'skipped'),
        ('A', 'failed'),
        ('outside', 'passed'),
    ]
    assert isinstance(reports[2].error, HookError)
