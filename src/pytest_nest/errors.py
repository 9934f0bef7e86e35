"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report malformed suite declarations, focus misuse, and hook failures
in a structured and human-readable way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_PATH_SEPARATOR = ' > '
FORMAT_ROOT = '<root suite>'
FORMAT_INDENT = 4

SCALARS = (str, bytes, int, float, bool)
SEQUENCES = (list, tuple)


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file declaring the failing suite.
    filename: str | None

    #: Chain of suite descriptions from the root to the failing node.
    path: 'Sequence[str] | None'
    #: Description of the failing spec or declaration, if any.
    description: str | None
    #: Hook category (`before`, `before_each`, ...) that failed.
    hook: str | None

    #: Underlying exception that triggered formatting.
    error: BaseException | None


class ErrorFormatter:
    """Utility class for formatting suite-related errors.

    This formatter is responsible for producing human-readable
    error messages with optional location and a YAML snippet
    describing the failing declaration.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format declaration location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, suite path
            and hook category when available.
        """
        indent = cls._ensure_indent(indent)

        message = ''
        if filename := context.get('filename'):
            message += f'{indent}in "{filename}"{linesep}'

        if (path := context.get('path')) is not None:
            message += f'{indent}at {cls.format_path(path)}{linesep}'

        if hook := context.get('hook'):
            message += f'{indent}during {hook}{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a YAML snippet illustrating the failing declaration.

        Args:
            context: Error context containing declaration data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        element: dict[str, Any] = {}
        if description := context.get('description'):
            element['description'] = description
        if error := context.get('error'):
            element['error'] = f'{error!r}'

        if not element:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @staticmethod
    def format_path(path: 'Sequence[str]') -> str:
        """Render a description path for humans."""
        if not path:
            return FORMAT_ROOT

        return FORMAT_PATH_SEPARATOR.join(path)

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, dict):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [cls._filter_unsafe(item) for item in value]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class FocusWarning(UserWarning):
    """Warning emitted when focused declarations suppress their siblings.

    Focus is a debugging aid; the warning makes sure a forgotten
    `fit`/`fdescribe` does not silently shrink a test run.
    """


class NestError(Exception, ErrorFormatter):
    """Base exception for all pytest-nest errors.

    All custom exceptions raised by the library inherit from
    this class to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    @property
    def path(self) -> tuple[str, ...] | None:
        """Description path attached to the error, if known."""
        if not self.context or self.context.get('path') is None:
            return None

        return tuple(self.context['path'])  # type: ignore[arg-type]

    def with_context(self, **values: Any) -> 'Self':  # noqa: ANN401
        """Create a copy of the error enriched with extra context.

        Existing context values win over the provided ones, so the
        most specific location recorded first is preserved.

        Args:
            **values: Additional `ErrorContext` fields.

        Returns:
            A new error of the same type.
        """
        context = ErrorContext(**values)  # type: ignore[typeddict-item]
        context.update(self.context or {})

        return type(self)(self.message, context=context)


class DeclarationError(NestError):
    """Error raised when a suite declaration can not be evaluated.

    This covers declaration bodies raising exceptions and misuse of
    the declaration DSL (invalid descriptions, declarations made
    outside of an evaluated body).
    """

    @classmethod
    def from_exception(cls, error: Exception, *,
                       path: 'Sequence[str]',
                       filename: str | None = None) -> 'Self':
        """Create a declaration error from a failing declaration body.

        Args:
            error: Exception raised by the declaration body.
            path: Description path of the failing suite.
            filename: Optional name of the declaring source file.

        Returns:
            DeclarationError describing the failure.
        """
        error_context = ErrorContext(
            filename=filename,
            path=tuple(path),
            error=error,
        )

        return cls('Failed to evaluate suite declaration', context=error_context)


class DuplicateDeclarationError(DeclarationError):
    """Error raised when sibling declarations share a description."""

    @classmethod
    def for_description(cls, kind: str, description: str) -> 'Self':
        """Create a duplicate declaration error.

        Args:
            kind: Declaration kind, `suite` or `spec`.
            description: The colliding description.

        Returns:
            DuplicateDeclarationError for the description.
        """
        return cls(
            f'{kind.capitalize()} with description {description!r} does already exist',
            context=ErrorContext(description=description),
        )


class FocusError(DeclarationError):
    """Error raised for focused declarations when focus is forbidden."""


class HookError(NestError):
    """Error raised when a lifecycle hook fails.

    The failure is attributed to the spec whose execution triggered
    the hook; the original exception is chained as the cause.
    """

    @classmethod
    def from_exception(cls, error: BaseException, *,
                       hook: str,
                       path: 'Sequence[str]') -> 'Self':
        """Create a hook error from a failing hook body.

        Args:
            error: Exception raised by the hook.
            hook: Hook category.
            path: Description path of the suite owning the hook.

        Returns:
            HookError describing the failure.
        """
        error_context = ErrorContext(
            path=tuple(path),
            hook=hook,
            error=error,
        )

        return cls(f'Hook {hook!r} failed', context=error_context)
