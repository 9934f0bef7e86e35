"""Pytest plugin for collecting and executing nested spec declarations.

This module integrates pytest-nest with pytest by:
- registering custom command-line and ini options;
- resolving `NestSettings` and attaching them to the pytest config;
- collecting spec modules as trees of suites and specs.

Python files matching `spec_*.py` (configurable with the `nest_files`
ini option) are collected as spec modules.
"""

from typing import TYPE_CHECKING

from pytest_nest.settings import DEFAULT_FILES, DEFAULT_FUNCTIONS, NestSettings

from .spec import SpecFile

if TYPE_CHECKING:
    from pathlib import Path

    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Node


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line and ini options for pytest-nest.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('nest', 'nested spec declarations')
    group.addoption(
        '--nest-forbid-focus',
        action='store_true',
        dest='nest_forbid_focus',
        default=None,
        help=(
            'Fail collection when a focused declaration (fdescribe, fit) '
            'is found instead of warning about suppressed siblings. '
            'Useful on CI to catch focus left in by accident.'
        ),
    )
    parser.addini(
        'nest_files',
        type='args',
        help=f'Glob patterns of spec module file names (default: {" ".join(DEFAULT_FILES)}).',
    )
    parser.addini(
        'nest_functions',
        type='args',
        help=f'Glob patterns of entry point function names (default: {" ".join(DEFAULT_FUNCTIONS)}).',
    )
    parser.addini(
        'nest_forbid_focus',
        type='bool',
        default=False,
        help='Same as --nest-forbid-focus.',
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-nest integration.

    This hook resolves `NestSettings` from the environment, ini file
    and command line, and attaches it as `config.nest_settings`.

    Args:
        config: Pytest configuration object.
    """
    forbid_focus = config.getoption('nest_forbid_focus', default=None) or config.getini('nest_forbid_focus')

    config.nest_settings = NestSettings.resolve(  # type: ignore[attr-defined]
        files=config.getini('nest_files'),
        functions=config.getini('nest_functions'),
        forbid_focus=forbid_focus or None,
    )


def pytest_collect_file(parent: 'Node', file_path: 'Path') -> SpecFile | None:
    """Collect spec modules.

    Args:
        parent: Parent pytest collection node.
        file_path: Path to the file being considered.

    Returns:
        A `SpecFile` collector if the file is a spec module, otherwise ``None``.
    """
    settings: NestSettings = parent.config.nest_settings  # type: ignore[attr-defined]

    if file_path.suffix == '.py' and settings.is_spec_file(file_path.name):
        return SpecFile.from_parent(
            parent,
            path=file_path,
        )

    return None
