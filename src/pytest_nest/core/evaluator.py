"""Suite tree evaluation.

The evaluator turns lazy `SuiteDefinition` records into the realized
tree of `Suite` and `Spec` nodes. Declaration bodies are executed
depth-first, one at a time, against a `SuiteBuilder` that is reset
before every body and sealed after it returns.
"""

from functools import partial
from typing import TYPE_CHECKING
from warnings import warn, warn_explicit

from pytest_nest.errors import (
    DeclarationError,
    ErrorFormatter,
    FocusError,
    FocusWarning,
    NestError,
)

from .builder import Declarations, SuiteBuilder
from .suite import PENDING_SUITE_SPEC, Executable, Pending, Spec, Suite, SuiteDefinition

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .suite import Definition


def apply_focus[T: 'Definition'](declarations: 'Sequence[T]') -> tuple[tuple[T, ...], tuple[T, ...]]:
    """Select the effective declarations of one sibling group.

    If any declaration is focused, plain declarations are dropped;
    pending declarations are always kept. Declaration order is preserved.

    Args:
        declarations: Sibling declarations of one kind, in declaration order.

    Returns:
        A tuple of kept and dropped declarations.
    """
    if not any(item.mark == 'focused' for item in declarations):
        return tuple(declarations), ()

    kept = tuple(item for item in declarations if item.mark != 'plain')
    dropped = tuple(item for item in declarations if item.mark == 'plain')

    return kept, dropped


class SuiteEvaluator:
    """Evaluator of suite declarations into a realized tree.

    The evaluator keeps no state between runs: evaluating the same
    entry point twice yields two structurally identical trees.

    Attributes:
        forbid_focus: Raise `FocusError` on focused declarations instead
            of emitting a `FocusWarning` when siblings are dropped.
        filename: Optional source file name used in error messages.
    """

    def __init__(self, *, forbid_focus: bool = False,
                 filename: str | None = None) -> None:
        """Initialize the evaluator.

        Args:
            forbid_focus: Whether focused declarations are an error.
            filename: Source file name for error reporting.
        """
        self.forbid_focus = forbid_focus
        self.filename = filename

    def evaluate(self, definition: SuiteDefinition, builder: SuiteBuilder,
                 parent: Suite | None = None) -> Suite:
        """Evaluate a declaration and all of its descendants.

        Args:
            definition: Declaration to evaluate.
            builder: Builder the declaration bodies declare against.
            parent: Realized parent suite, `None` for the root.

        Returns:
            The realized suite.

        Raises:
            DeclarationError: If a declaration body fails or misuses the DSL.
            DuplicateDeclarationError: If sibling descriptions collide.
            FocusError: If focus is used while forbidden.
        """
        suite = Suite(
            definition.description,
            parent,
            pending=definition.mark == 'pending',
            index=definition.index,
        )

        if suite.pending:
            suite.specs.append(Spec(
                PENDING_SUITE_SPEC,
                suite,
                Pending(f'suite {suite.full_description!r} is pending'),
            ))
            return suite

        declarations = self.declare(definition, builder)

        specs, dropped_specs = apply_focus(declarations.specs)
        suites, dropped_suites = apply_focus(declarations.suites)

        self.check_focus(definition, (*specs, *suites), (*dropped_specs, *dropped_suites))

        for spec in specs:
            block = Pending() if spec.body is None else Executable(spec.body)
            suite.specs.append(Spec(spec.description, suite, block, index=spec.index))

        for child in suites:
            suite.suites.append(self.evaluate(child, builder, suite))

        suite.before = declarations.before
        suite.before_each = declarations.before_each
        suite.after_each = declarations.after_each
        suite.after = declarations.after

        return suite

    def declare(self, definition: SuiteDefinition, builder: SuiteBuilder) -> Declarations:
        """Run a declaration body and return what it declared.

        Args:
            definition: Declaration whose body to run.
            builder: Builder to reset, fill and seal.

        Returns:
            Declarations snapshot of the body.
        """
        builder.reset(definition)
        try:
            if definition.body is not None:
                definition.body()

        except NestError as error:
            raise error.with_context(
                filename=self.filename,
                path=definition.path,
            ) from error

        except Exception as error:
            raise DeclarationError.from_exception(
                error,
                path=definition.path,
                filename=self.filename,
            ) from error

        finally:
            declarations = builder.seal()

        return declarations

    def check_focus(self, definition: SuiteDefinition,
                    kept: 'Sequence[Definition]',
                    dropped: 'Sequence[Definition]') -> None:
        """Report focus usage at one level.

        Raises:
            FocusError: If any kept declaration is focused and focus
                is forbidden.
        """
        focused = [item.description for item in kept if item.mark == 'focused']
        if not focused:
            return

        location = ErrorFormatter.format_path(definition.path)

        if self.forbid_focus:
            raise FocusError(
                f'Focused declarations are forbidden: {", ".join(map(repr, focused))}',
                context={'filename': self.filename, 'path': definition.path},
            )

        if dropped:
            message = (
                f'Focused declarations in {location} suppress '
                f'{len(dropped)} sibling(s): {", ".join(repr(item.description) for item in dropped)}'
            )

            first = next(item for item in kept if item.mark == 'focused')
            if (origin := declared_at(getattr(first, 'body', None))) is None:
                warn(message, category=FocusWarning)
                return

            filename, lineno = origin
            warn_explicit(message, category=FocusWarning, filename=filename, lineno=lineno)


def declared_at(body: 'Callable[..., object] | None') -> tuple[str, int] | None:
    """Locate the source of a declaration body.

    Returns:
        File name and first line of the body, `None` if unknown.
    """
    while isinstance(body, partial):
        body = body.func

    code = getattr(body, '__code__', None)
    if code is None:
        return None

    return code.co_filename, code.co_firstlineno


def evaluate_entrypoint(entrypoint: 'Callable[[SuiteBuilder], object]', *,
                        builder: SuiteBuilder | None = None,
                        evaluator: SuiteEvaluator | None = None) -> Suite:
    """Realize the suite tree declared by a host entry point.

    The entry point is called once with the builder and performs the
    outermost declarations, which become children of an implicit root.

    Args:
        entrypoint: Callable accepting a `SuiteBuilder`.
        builder: Builder to use; a new one is created if omitted.
        evaluator: Evaluator to use; a default one is created if omitted.

    Returns:
        The realized root suite.
    """
    if builder is None:
        builder = SuiteBuilder()

    if evaluator is None:
        evaluator = SuiteEvaluator()

    root = SuiteDefinition(body=partial(entrypoint, builder))

    return evaluator.evaluate(root, builder)
