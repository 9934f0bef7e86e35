"""Command-line utilities for pytest-nest spec modules.

The CLI inspects and runs spec modules without pytest: `tree` prints
the realized suite tree as YAML, `run` executes it with the
host-neutral runner.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from click import ClickException, argument, echo, group, option, style
from click import Path as PathParam
from yaml import dump

from pytest_nest.core import SpecRunner, SuiteEvaluator, evaluate_entrypoint
from pytest_nest.core.loader import find_entrypoints, load_module
from pytest_nest.errors import NestError
from pytest_nest.models import SuiteView
from pytest_nest.settings import NestSettings

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pytest_nest.core import Suite
    from pytest_nest.models import SpecReport

SpecFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

OUTCOME_COLORS = {
    'passed': 'green',
    'failed': 'red',
    'skipped': 'yellow',
}


def _realize(path: Path, settings: NestSettings) -> 'Iterable[tuple[str, Suite]]':
    """Evaluate every entry point of a spec module.

    Args:
        path: Spec module path.
        settings: Resolved settings.

    Yields:
        Pairs of entry point name and realized root suite.

    Raises:
        ClickException: If the module or a declaration is broken.
    """
    try:
        module = load_module(path)
        evaluator = SuiteEvaluator(forbid_focus=settings.forbid_focus, filename=f'{path}')

        for name, entrypoint in find_entrypoints(module, settings):
            yield name, evaluate_entrypoint(entrypoint, evaluator=evaluator)

    except NestError as error:
        raise ClickException(f'{error}') from error


def _echo_report(report: 'SpecReport') -> None:
    """Print one spec report line."""
    outcome = style(report.outcome.upper(), fg=OUTCOME_COLORS[report.outcome])

    line = f'{outcome} {report.full_description}'
    if report.message and report.outcome != 'passed':
        line += f' ({report.message.splitlines()[0]})'

    echo(line)


@group(help='Command-line utilities for pytest-nest spec modules.')
def cli() -> None:
    """Root CLI group for pytest-nest tools."""
    return None


@cli.command(
    name='tree',
    help='Print the realized suite tree of a spec module as YAML.',
)
@option(
    '-f', '--functions',
    multiple=True,
    help='Glob pattern of entry point function names (repeatable).',
)
@argument('path', type=SpecFilepath)
def print_tree(path: Path, functions: tuple[str, ...]) -> None:
    """Evaluate a spec module and print its tree.

    Args:
        path: Spec module path.
        functions: Entry point name patterns.
    """
    settings = NestSettings.resolve(functions=functions)

    content = {
        name: SuiteView.from_suite(suite).model_dump(exclude_defaults=True)
        for name, suite in _realize(path, settings)
    }

    echo(dump(content, sort_keys=False, allow_unicode=True), nl=False)


@cli.command(
    name='run',
    help='Run the specs of a spec module without pytest.',
)
@option(
    '-f', '--functions',
    multiple=True,
    help='Glob pattern of entry point function names (repeatable).',
)
@option(
    '--forbid-focus',
    is_flag=True,
    default=None,
    help='Fail on focused declarations instead of warning.',
)
@argument('path', type=SpecFilepath)
def run_specs(path: Path, functions: tuple[str, ...], forbid_focus: bool | None) -> None:
    """Evaluate and run a spec module.

    Args:
        path: Spec module path.
        functions: Entry point name patterns.
        forbid_focus: Whether focused declarations are an error.
    """
    settings = NestSettings.resolve(functions=functions, forbid_focus=forbid_focus)

    reports: list[SpecReport] = []
    for _, suite in _realize(path, settings):
        runner = SpecRunner(reporter=_echo_report)
        reports.extend(runner.run(suite.collect_specs()))

    counts = {
        outcome: sum(1 for report in reports if report.outcome == outcome)
        for outcome in OUTCOME_COLORS
    }

    echo(', '.join(f'{count} {outcome}' for outcome, count in counts.items()))

    if counts['failed']:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()
