"""Step definitions.

A step is any callable ``step(ctx, previous)``; it may be a coroutine
function. Steps are either fixed when the pipeline is built or produced
per run by a generator wrapped with :func:`deferred`, which only runs once
every fixed step has finished and can therefore read what they stored on
the context.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from savepipe.application.guard import resolve_options, shape
from savepipe.application.pipelines.context import set_value
from savepipe.domain.errors import StepDefinitionError, TransactionStateError
from savepipe.infrastructure.database import Transaction, current_transaction_var

Step = Callable[[Any, Any], Any]
StepGenerator = Callable[[Any], Any]


@dataclass(frozen=True)
class Deferred:
    """Marks a step generator to be resolved against the live context."""

    generator: StepGenerator

    @property
    def name(self) -> str:
        return step_name(self.generator)


def deferred(generator: StepGenerator) -> Deferred:
    """Wrap ``generator(ctx) -> [steps]`` so it runs after the fixed steps."""
    if not callable(generator):
        raise StepDefinitionError(message=f"Step generator is not callable: {generator!r}")
    return Deferred(generator)


def step_name(step: Any) -> str:
    return getattr(step, "__name__", type(step).__name__)


def flatten_steps(items: Iterable[Any]) -> list[Step]:
    """Flatten steps and lists/tuples of steps, keeping their order."""
    steps: list[Step] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            steps.extend(flatten_steps(item))
        elif isinstance(item, Deferred) or not callable(item):
            raise StepDefinitionError(
                message=f"Expected a step or a sequence of steps, got {item!r}",
            )
        else:
            steps.append(item)
    return steps


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def current_transaction() -> Transaction:
    """Transaction of the pipeline run executing in this task."""
    tx = current_transaction_var.get()
    if tx is None:
        raise TransactionStateError(
            message="No pipeline transaction is running in this task",
            operation="current_transaction",
        )
    return tx


def query_step(
    sql: str,
    params: Mapping[str, Any] | Callable[[Any], Mapping[str, Any]] | None = None,
    *,
    into: str | None = None,
    **guard_options: Any,
) -> Step:
    """Build a step that runs ``sql`` in the current transaction.

    ``params`` may be a mapping or a callable of the context, evaluated when
    the step runs. The result is shaped with the guard options and, when
    ``into`` is given, stored on the context under that name.
    """
    options = resolve_options(**guard_options)

    async def run_query(ctx: Any, previous: Any) -> Any:
        values = params(ctx) if callable(params) else params
        result = await current_transaction().query(sql, values)
        shaped = None if options.only_err else shape(result, options)
        if into is not None:
            set_value(ctx, into, shaped)
        return shaped

    run_query.__name__ = f"query_{into}" if into else "query"
    return run_query
