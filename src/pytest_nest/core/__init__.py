"""Suite definition and execution engine.

This package contains the host-independent core of pytest-nest.

It provides:
- the declaration DSL (`SuiteBuilder`) recording one level at a time;
- lazy declaration records and the realized `Suite`/`Spec` tree;
- the evaluator applying focus and pending rules;
- the hook planner and a host-neutral runner with a reporting sink.
"""

from .builder import SuiteBuilder
from .evaluator import SuiteEvaluator, evaluate_entrypoint
from .hooks import HookPlan, plan_hooks
from .runner import SpecRunner, run_spec
from .suite import Executable, Pending, Spec, Suite, SuiteDefinition

__all__ = (
    'Executable',
    'HookPlan',
    'Pending',
    'Spec',
    'SpecRunner',
    'Suite',
    'SuiteBuilder',
    'SuiteDefinition',
    'SuiteEvaluator',
    'evaluate_entrypoint',
    'plan_hooks',
    'run_spec',
)
