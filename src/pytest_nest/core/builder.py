"""Suite declaration DSL.

This module defines `SuiteBuilder`, the object handed to declaration
entry points and captured by nested declaration bodies. It records a
single level of declarations at a time; the evaluator resets it before
each body runs and seals it once the declarations have been read.

Example:
    def describe_calculator(s: SuiteBuilder) -> None:

        @s.describe('A calculator')
        def _() -> None:
            calculator = {}

            @s.before_each
            def reset() -> None:
                calculator['value'] = 0

            @s.it('starts at zero')
            def _() -> None:
                assert calculator['value'] == 0
"""

from typing import TYPE_CHECKING, NamedTuple, overload

from pytest_nest.errors import DeclarationError, DuplicateDeclarationError

from .suite import SpecDefinition, SuiteDefinition

if TYPE_CHECKING:
    from collections.abc import Callable

    from .suite import Invokable, Mark

#: Decorator returned by DSL methods called without a body.
type Decorator = Callable[[Callable[[], object]], Callable[[], object]]


class Declarations(NamedTuple):
    """Snapshot of one level of declarations, in declaration order."""

    suites: tuple[SuiteDefinition, ...]
    specs: tuple[SpecDefinition, ...]

    before: tuple['Invokable', ...]
    before_each: tuple['Invokable', ...]
    after_each: tuple['Invokable', ...]
    after: tuple['Invokable', ...]


class SuiteBuilder:
    """Recorder of suite, spec and hook declarations.

    Suites and specs are kept in ordered mappings keyed by description
    and tagged as plain, focused or pending. Hooks are kept in plain
    lists in call order. Declarations are only accepted between
    `reset()` and `seal()`.
    """

    def __init__(self) -> None:
        """Initialize a sealed, empty builder."""
        self.prepare()
        self.sealed = True

    def prepare(self, parent: SuiteDefinition | None = None) -> None:
        """Clear all captured declarations.

        Args:
            parent: Declaration whose body is about to run.
        """
        self.parent = parent
        self.counter = 0

        self.suites: dict[str, SuiteDefinition] = {}
        self.specs: dict[str, SpecDefinition] = {}

        self.before_handlers: list[Invokable] = []
        self.before_each_handlers: list[Invokable] = []
        self.after_each_handlers: list[Invokable] = []
        self.after_handlers: list[Invokable] = []

    def reset(self, parent: SuiteDefinition | None = None) -> None:
        """Reset and open the builder for the next declaration body.

        Args:
            parent: Declaration whose body is about to run.
        """
        self.prepare(parent)
        self.sealed = False

    def seal(self) -> Declarations:
        """Close the builder and return the captured declarations.

        Returns:
            Snapshot of everything declared since the last reset.
        """
        self.sealed = True

        return Declarations(
            suites=tuple(self.suites.values()),
            specs=tuple(self.specs.values()),
            before=tuple(self.before_handlers),
            before_each=tuple(self.before_each_handlers),
            after_each=tuple(self.after_each_handlers),
            after=tuple(self.after_handlers),
        )

    @overload
    def describe(self, description: str) -> Decorator:
        ...  # pragma: no cover

    @overload
    def describe(self, description: str, body: 'Invokable') -> 'Invokable':
        ...  # pragma: no cover

    def describe(self, description: str,
                 body: 'Invokable | None' = None) -> 'Decorator | Invokable':
        """Declare a nested suite.

        Args:
            description: Suite description, unique among sibling suites.
            body: Declaration body; when omitted a decorator is returned.

        Returns:
            The body, or a decorator registering the decorated function.

        Raises:
            DuplicateDeclarationError: If a sibling suite uses the description.
        """
        return self._register_suite(description, body, 'plain')

    @overload
    def fdescribe(self, description: str) -> Decorator:
        ...  # pragma: no cover

    @overload
    def fdescribe(self, description: str, body: 'Invokable') -> 'Invokable':
        ...  # pragma: no cover

    def fdescribe(self, description: str,
                  body: 'Invokable | None' = None) -> 'Decorator | Invokable':
        """Declare a focused nested suite.

        Focused suites suppress plain sibling suites at the same level.
        """
        return self._register_suite(description, body, 'focused')

    @overload
    def xdescribe(self, description: str) -> Decorator:
        ...  # pragma: no cover

    @overload
    def xdescribe(self, description: str, body: 'Invokable') -> 'Invokable':
        ...  # pragma: no cover

    def xdescribe(self, description: str,
                  body: 'Invokable | None' = None) -> 'Decorator | Invokable':
        """Declare a pending nested suite.

        The body of a pending suite is never executed.
        """
        return self._register_suite(description, body, 'pending')

    @overload
    def it(self, description: str) -> Decorator:
        ...  # pragma: no cover

    @overload
    def it(self, description: str, body: 'Invokable') -> 'Invokable':
        ...  # pragma: no cover

    def it(self, description: str,
           body: 'Invokable | None' = None) -> 'Decorator | Invokable':
        """Declare a spec.

        Args:
            description: Spec description, unique among sibling specs.
            body: Spec body; when omitted a decorator is returned.

        Returns:
            The body, or a decorator registering the decorated function.

        Raises:
            DuplicateDeclarationError: If a sibling spec uses the description.
        """
        return self._register_spec(description, body, 'plain')

    @overload
    def fit(self, description: str) -> Decorator:
        ...  # pragma: no cover

    @overload
    def fit(self, description: str, body: 'Invokable') -> 'Invokable':
        ...  # pragma: no cover

    def fit(self, description: str,
            body: 'Invokable | None' = None) -> 'Decorator | Invokable':
        """Declare a focused spec.

        Focused specs suppress plain sibling specs in the same suite.
        """
        return self._register_spec(description, body, 'focused')

    def xit(self, description: str,
            body: 'Invokable | None' = None) -> Decorator:
        """Declare a pending spec.

        The spec is registered immediately. A body, if given, is
        discarded, and the returned decorator leaves the decorated
        function untouched.

        Returns:
            A pass-through decorator.
        """
        self._check_open()
        self._check_description(description)
        self._ensure_unique(self.specs, 'spec', description)
        self.specs[description] = SpecDefinition(
            description=description,
            mark='pending',
            index=self._next_index(),
        )

        return _passthrough

    def before(self, hook: 'Invokable') -> 'Invokable':
        """Run a hook once before the first spec of the current suite."""
        self._check_open()
        self.before_handlers.append(hook)
        return hook

    def after(self, hook: 'Invokable') -> 'Invokable':
        """Run a hook once after the last spec of the current suite."""
        self._check_open()
        self.after_handlers.append(hook)
        return hook

    def before_each(self, hook: 'Invokable') -> 'Invokable':
        """Run a hook before every spec of the current suite and below."""
        self._check_open()
        self.before_each_handlers.append(hook)
        return hook

    def after_each(self, hook: 'Invokable') -> 'Invokable':
        """Run a hook after every spec of the current suite and below."""
        self._check_open()
        self.after_each_handlers.append(hook)
        return hook

    def _register_suite(self, description: str, body: 'Invokable | None',
                        mark: 'Mark') -> 'Decorator | Invokable':
        """Register a suite declaration now or on decoration."""
        self._check_open()
        self._check_description(description)
        self._ensure_unique(self.suites, 'suite', description)

        def register(body: 'Invokable') -> 'Invokable':
            self._check_open()
            self._ensure_unique(self.suites, 'suite', description)
            self.suites[description] = SuiteDefinition(
                description=description,
                body=body,
                mark=mark,
                parent=self.parent,
                index=self._next_index(),
            )
            return body

        if body is None:
            return register

        return register(body)

    def _register_spec(self, description: str, body: 'Invokable | None',
                       mark: 'Mark') -> 'Decorator | Invokable':
        """Register a spec declaration now or on decoration."""
        self._check_open()
        self._check_description(description)
        self._ensure_unique(self.specs, 'spec', description)

        def register(body: 'Invokable') -> 'Invokable':
            self._check_open()
            self._ensure_unique(self.specs, 'spec', description)
            self.specs[description] = SpecDefinition(
                description=description,
                body=body,
                mark=mark,
                index=self._next_index(),
            )
            return body

        if body is None:
            return register

        return register(body)

    def _next_index(self) -> int:
        """Return the next level-wide declaration index."""
        index = self.counter
        self.counter += 1
        return index

    def _check_open(self) -> None:
        """Raise if declarations are not accepted at the moment."""
        if self.sealed:
            raise DeclarationError('Declarations are only allowed while a declaration body runs')

    @staticmethod
    def _check_description(description: object) -> None:
        """Raise if a description is not a non-empty string."""
        if not (isinstance(description, str) and description):
            raise DeclarationError(f'Description must be a non-empty string, got {description!r}')

    @staticmethod
    def _ensure_unique(declarations: dict[str, object], kind: str, description: str) -> None:
        """Raise if a sibling declaration already uses the description."""
        if description in declarations:
            raise DuplicateDeclarationError.for_description(kind, description)


def _passthrough(body: 'Callable[[], object]') -> 'Callable[[], object]':
    """Return the decorated function unchanged."""
    return body
