"""Base Pydantic models and runtime records.

This module defines the foundational model classes used by the library:
immutable records for declarations and reports, tolerant settings models,
and serializable views of a realized suite tree.
"""

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from typing import Self

    from pytest_nest.core.suite import Spec, Suite

#: Outcome of a single spec execution, as seen by a reporting sink.
type Outcome = Literal['passed', 'failed', 'skipped']


class SchemaModel(BaseModel):
    """Base immutable model for all library records.

    Design principles enforced by this model:
        - Immutability: records can not be modified after creation.
          Declarations captured once stay exactly as they were declared.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos.

    Arbitrary types are allowed so records can carry callables and
    exceptions.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings can not be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class SpecReport(SchemaModel):
    """Outcome of one spec, handed to a reporting sink exactly once."""

    path: tuple[str, ...] = Field(
        title='Description path',
        description='Descriptions from the outermost suite down to the spec.',
    )

    outcome: Outcome = Field(
        title='Outcome',
        description='Whether the spec passed, failed or was skipped.',
    )

    message: str | None = Field(
        default=None,
        title='Message',
        description='Failure message or skip reason.',
    )

    error: BaseException | None = Field(
        default=None,
        exclude=True,
        repr=False,
    )

    @property
    def full_description(self) -> str:
        """Space-joined description path."""
        return ' '.join(self.path)


class SpecView(SchemaModel):
    """Serializable view of a realized spec."""

    it: str
    pending: bool = False
    reason: str | None = None

    @classmethod
    def from_spec(cls, spec: 'Spec') -> 'Self':
        """Build a view from a realized spec."""
        reason = getattr(spec.block, 'reason', None)

        return cls(it=spec.description, pending=spec.pending, reason=reason)


class SuiteView(SchemaModel):
    """Serializable view of a realized suite and its subtree."""

    describe: str | None = None
    pending: bool = False
    hooks: dict[str, int] = Field(default_factory=dict)
    children: list['SuiteView | SpecView'] = Field(default_factory=list)

    @classmethod
    def from_suite(cls, suite: 'Suite') -> 'Self':
        """Build a view of a realized suite in declaration order."""
        from pytest_nest.core.suite import Suite  # noqa: PLC0415

        hooks = {
            kind: len(handlers)
            for kind, handlers in suite.hooks.items()
            if handlers
        }

        return cls(
            describe=suite.description,
            pending=suite.pending,
            hooks=hooks,
            children=[
                cls.from_suite(child) if isinstance(child, Suite) else SpecView.from_spec(child)
                for child in suite.children
            ],
        )
