"""Spec module loading and entry point discovery.

Spec modules are plain Python files. Their declaration entry points are
module-level functions, defined in the module itself, whose names match
the configured patterns; each accepts a single `SuiteBuilder` argument.
"""

from hashlib import sha1
from importlib.util import module_from_spec, spec_from_file_location
from inspect import isfunction
from sys import modules
from typing import TYPE_CHECKING

from pytest_nest.errors import NestError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path
    from types import ModuleType

    from pytest_nest.settings import NestSettings

    from .builder import SuiteBuilder

#: Declaration entry point as found in a spec module.
type EntryPoint = Callable[[SuiteBuilder], object]

MODULE_PREFIX = 'pytest_nest_specs'


def module_name(path: 'Path') -> str:
    """Derive a unique, importable module name for a spec file.

    Args:
        path: Spec file path.

    Returns:
        Module name built from the file stem and a digest of the
        resolved path, so equally named files never collide.
    """
    digest = sha1(str(path.resolve()).encode('utf-8'), usedforsecurity=False).hexdigest()

    return f'{MODULE_PREFIX}_{path.stem}_{digest[:8]}'


def load_module(path: 'Path') -> 'ModuleType':
    """Import a spec file as a module.

    The module is registered in `sys.modules` before execution so that
    objects defined in it stay importable (for example by pickling).

    Args:
        path: Spec file path.

    Returns:
        The executed module.

    Raises:
        NestError: If the file can not be imported as a module.
        Exception: Whatever the module raises while executing.
    """
    name = module_name(path)

    spec = spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise NestError(f'Can not import {path} as a spec module', context={'filename': str(path)})

    module = module_from_spec(spec)
    modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        modules.pop(name, None)
        raise

    return module


def find_entrypoints(module: 'ModuleType',
                     settings: 'NestSettings') -> 'Iterable[tuple[str, EntryPoint]]':
    """Find declaration entry points of a spec module.

    Args:
        module: Loaded spec module.
        settings: Settings with entry point name patterns.

    Yields:
        Pairs of function name and function, in definition order.
    """
    for name, value in vars(module).items():
        if not isfunction(value) or value.__module__ != module.__name__:
            continue

        if settings.is_entrypoint(name):
            yield name, value
