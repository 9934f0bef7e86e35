"""Runtime configuration of pytest-nest.

Settings are resolved from `NEST_`-prefixed environment variables and may
be overridden explicitly by pytest options or command-line flags.
"""

from fnmatch import fnmatch
from typing import TYPE_CHECKING, Any

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from pytest_nest.models import SettingsModel

if TYPE_CHECKING:
    from typing import Self

DEFAULT_FILES = ('spec_*.py',)
DEFAULT_FUNCTIONS = ('describe_*',)


class NestSettings(SettingsModel):
    """Resolved pytest-nest settings.

    Attributes:
        files: Glob patterns of file names collected as spec modules.
        functions: Glob patterns of module-level function names treated
            as declaration entry points.
        forbid_focus: Fail evaluation on focused declarations instead of
            emitting a `FocusWarning`.
    """

    model_config = SettingsConfigDict(
        env_prefix='NEST_',
        frozen=True,
        extra='ignore',
    )

    files: tuple[str, ...] = Field(
        default=DEFAULT_FILES,
        title='Spec file patterns',
    )

    functions: tuple[str, ...] = Field(
        default=DEFAULT_FUNCTIONS,
        title='Entry point function patterns',
    )

    forbid_focus: bool = Field(
        default=False,
        title='Forbid focused declarations',
    )

    @classmethod
    def resolve(cls, **overrides: Any) -> 'Self':  # noqa: ANN401
        """Resolve settings, letting explicit non-empty values win.

        Args:
            **overrides: Explicit values; `None` and empty sequences
                fall back to the environment or defaults.

        Returns:
            Resolved settings.
        """
        return cls(**{
            name: value
            for name, value in overrides.items()
            if value is not None and value != [] and value != ()
        })

    def is_spec_file(self, filename: str) -> bool:
        """Check whether a file name matches the spec file patterns."""
        return any(fnmatch(filename, pattern) for pattern in self.files)

    def is_entrypoint(self, name: str) -> bool:
        """Check whether a function name matches the entry point patterns."""
        return any(fnmatch(name, pattern) for pattern in self.functions)
