"""Declaration records and the realized suite tree.

Declarations (`SuiteDefinition`, `SpecDefinition`) are inert, immutable
records captured by the `SuiteBuilder` while a declaration body runs.
The evaluator turns them into the realized tree of `Suite` and `Spec`
nodes, which stays unchanged for the rest of the run.
"""

from collections.abc import Callable
from typing import Literal, NamedTuple

from pydantic import Field

from pytest_nest.models import SchemaModel

#: Zero-argument unit of work: a hook, a spec body or a declaration body.
#: A return value, if any, is ignored; exceptions propagate to the caller.
type Invokable = Callable[[], object]

#: Declaration flavour: `describe`/`it`, `fdescribe`/`fit` or `xdescribe`/`xit`.
type Mark = Literal['plain', 'focused', 'pending']

#: Hook categories in the order they are declared in the DSL.
type HookKind = Literal['before', 'before_each', 'after_each', 'after']

HOOK_KINDS: tuple[HookKind, ...] = ('before', 'before_each', 'after_each', 'after')

#: Description of the spec synthesized for a pending suite.
PENDING_SUITE_SPEC = '(pending)'

#: Separator of a spec full description.
DESCRIPTION_SEPARATOR = ' '


class Definition(SchemaModel):
    """Common fields of captured declarations."""

    description: str = Field(
        title='Description',
        description='Human-readable description, unique among direct siblings.',
    )

    mark: Mark = Field(
        default='plain',
        title='Mark',
        description='Whether the declaration is plain, focused or pending.',
    )

    index: int = Field(
        default=0,
        title='Declaration index',
        description='Position among all suites and specs declared at one level.',
    )


class SuiteDefinition(Definition):
    """Lazy record of one `describe` call.

    The body is not executed when the record is created; the evaluator
    invokes it exactly once, depth-first. The parent link is
    navigational only and is used to report description paths.
    """

    description: str | None = None  # type: ignore[assignment]
    body: Callable[[], object] | None = None
    parent: 'SuiteDefinition | None' = Field(default=None, repr=False)

    @property
    def path(self) -> tuple[str, ...]:
        """Descriptions from the outermost declaration down to this one."""
        descriptions = []
        node: SuiteDefinition | None = self
        while node is not None:
            if node.description is not None:
                descriptions.append(node.description)
            node = node.parent

        return tuple(reversed(descriptions))


class SpecDefinition(Definition):
    """Record of one `it`-family call."""

    body: Callable[[], object] | None = None


class Executable(NamedTuple):
    """Block of a spec that can be run."""

    body: Invokable


class Pending(NamedTuple):
    """Block of a spec that is declared but never run."""

    reason: str = 'pending'


#: A spec block is either runnable or pending, never both.
type Block = Executable | Pending


class Spec:
    """Realized leaf of the suite tree."""

    __slots__ = ('block', 'description', 'index', 'suite')

    def __init__(self, description: str, suite: 'Suite', block: Block, *,
                 index: int = 0) -> None:
        """Initialize a spec.

        Args:
            description: Spec description.
            suite: Suite the spec belongs to (back-reference).
            block: Executable body or pending marker.
            index: Declaration index among the suite children.
        """
        self.description = description
        self.suite = suite
        self.block = block
        self.index = index

    def __repr__(self) -> str:
        return f'<Spec {self.full_description!r}>'

    @property
    def pending(self) -> bool:
        """Whether the spec is pending."""
        return isinstance(self.block, Pending)

    @property
    def path(self) -> tuple[str, ...]:
        """Descriptions from the outermost suite down to this spec."""
        return (*self.suite.path, self.description)

    @property
    def full_description(self) -> str:
        """Human-readable identifier of the spec."""
        return DESCRIPTION_SEPARATOR.join(self.path)


class Suite:
    """Realized node of the suite tree.

    A suite owns its specs, its child suites and the four hook lists
    declared directly in its body. The parent link is a back-reference.
    """

    def __init__(self, description: str | None = None,
                 parent: 'Suite | None' = None, *,
                 pending: bool = False,
                 index: int = 0) -> None:
        """Initialize an empty suite.

        Args:
            description: Suite description; `None` for the implicit root.
            parent: Enclosing suite.
            pending: Whether the suite was declared with `xdescribe`.
            index: Declaration index among the parent children.
        """
        self.description = description
        self.parent = parent
        self.pending = pending
        self.index = index

        self.specs: list[Spec] = []
        self.suites: list[Suite] = []

        self.before: tuple[Invokable, ...] = ()
        self.before_each: tuple[Invokable, ...] = ()
        self.after_each: tuple[Invokable, ...] = ()
        self.after: tuple[Invokable, ...] = ()

    def __repr__(self) -> str:
        return f'<Suite {self.full_description or "<root>"!r}>'

    @property
    def hooks(self) -> dict[HookKind, tuple[Invokable, ...]]:
        """The four hook lists keyed by category."""
        return {kind: getattr(self, kind) for kind in HOOK_KINDS}

    @property
    def path(self) -> tuple[str, ...]:
        """Descriptions from the outermost suite down to this one."""
        return tuple(
            suite.description
            for suite in reversed(self.ancestry)
            if suite.description is not None
        )

    @property
    def full_description(self) -> str:
        """Human-readable identifier of the suite."""
        return DESCRIPTION_SEPARATOR.join(self.path)

    @property
    def ancestry(self) -> tuple['Suite', ...]:
        """This suite followed by its ancestors up to the root."""
        chain = []
        suite: Suite | None = self
        while suite is not None:
            chain.append(suite)
            suite = suite.parent

        return tuple(chain)

    @property
    def children(self) -> list['Suite | Spec']:
        """Specs and child suites merged in declaration order."""
        return sorted([*self.specs, *self.suites], key=lambda child: child.index)

    def contains(self, spec: Spec) -> bool:
        """Check whether a spec lies anywhere beneath this suite."""
        return self in spec.suite.ancestry

    def collect_specs(self) -> list[Spec]:
        """Flatten the subtree into specs, pre-order, in declaration order."""
        specs: list[Spec] = []
        for child in self.children:
            if isinstance(child, Suite):
                specs.extend(child.collect_specs())
            else:
                specs.append(child)

        return specs
