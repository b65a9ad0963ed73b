"""Pipeline builder - compose steps into one savepoint-guarded transaction."""

import time
from contextlib import nullcontext
from typing import Any, Callable
from uuid import uuid4

from savepipe.application.pipelines.context import get_return_value
from savepipe.application.pipelines.steps import (
    Deferred,
    Step,
    flatten_steps,
    maybe_await,
    step_name,
)
from savepipe.config import get_settings
from savepipe.infrastructure.database import (
    Transaction,
    acquire,
    current_transaction_var,
    get_resource,
)
from savepipe.infrastructure.telemetry import (
    create_span,
    get_current_trace_id,
    get_logger,
    record_active_run,
    record_pipeline_run,
    record_rollback_failure,
    record_step_execution,
    reset_pipeline_context,
    set_pipeline_context,
)

logger = get_logger(__name__)

Callback = Callable[[BaseException | None, Any], Any]


class TransactionMethod:
    """A reusable transactional operation.

    Each run:
    1. Begins a transaction and marks the initial rollback point
    2. Runs the fixed steps in order, each receiving the previous result
    3. Resolves the deferred generators against the context and runs their steps
    4. Commits and returns ``ctx.return_value``

    A failure in steps 2-3 rolls back to the initial point and the original
    error is reported, even if the rollback fails too. A failed commit is
    reported after the same best-effort rollback. A failure while beginning
    is reported as is with nothing rolled back.
    """

    def __init__(
        self,
        steps: list[Step],
        generators: list[Deferred],
        name: str,
        savepoint_name: str,
    ):
        self.steps = steps
        self.generators = generators
        self.name = name
        self.savepoint_name = savepoint_name

    def __repr__(self) -> str:
        return (
            f"TransactionMethod(name={self.name!r}, steps={len(self.steps)}, "
            f"generators={len(self.generators)})"
        )

    async def __call__(self, ctx: Any, callback: Callback | None = None) -> Any:
        """Run once for ``ctx``.

        Without a callback the committed value is returned and failures are
        raised. With one, ``callback(error, value)`` is called exactly once
        (and awaited if it returns an awaitable) and nothing is returned.
        """
        if callback is None:
            return await self.run(ctx)

        try:
            value = await self.run(ctx)
        except Exception as exc:
            outcome = callback(exc, None)
        else:
            outcome = callback(None, value)
        await maybe_await(outcome)
        return None

    async def run(self, ctx: Any) -> Any:
        """Run once for ``ctx``, returning the committed value or raising."""
        resource = get_resource()
        run_id = uuid4().hex
        context_tokens = set_pipeline_context(pipeline_run_id=run_id, pipeline_name=self.name)
        record_active_run(self.name, 1)
        start = time.perf_counter()
        status = "prelude_failed"

        try:
            with self._span(run_id):
                async with acquire(resource) as connection:
                    tx = Transaction(connection)
                    tx_token = current_transaction_var.set(tx)
                    try:
                        await tx.begin()
                        await tx.mark_point(self.savepoint_name)

                        try:
                            value = await self._run_steps(ctx)
                        except Exception as exc:
                            status = "rolled_back"
                            await self._rollback(tx, exc)
                            raise

                        status = "commit_failed"
                        try:
                            await tx.commit()
                        except Exception as exc:
                            # Leave a shared connection outside the failed transaction
                            await self._rollback(tx, exc)
                            raise
                        status = "committed"
                        return value
                    finally:
                        current_transaction_var.reset(tx_token)
        except Exception as exc:
            logger.warning(
                "Pipeline run failed",
                extra={
                    "status": status,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "trace_id": get_current_trace_id(),
                },
            )
            raise
        finally:
            duration = time.perf_counter() - start
            record_active_run(self.name, -1)
            record_pipeline_run(self.name, status, duration)
            logger.debug(
                "Pipeline run finished",
                extra={"status": status, "duration_ms": int(duration * 1000)},
            )
            reset_pipeline_context(context_tokens)

    def _span(self, run_id: str):
        if not get_settings().otel_enabled:
            return nullcontext()
        return create_span(
            "savepipe.pipeline",
            attributes={"pipeline.name": self.name, "pipeline.run_id": run_id},
        )

    async def _run_steps(self, ctx: Any) -> Any:
        previous = None
        for step in self.steps:
            previous = await self._run_step(step, ctx, previous)

        # Generators see every change the fixed steps made to the context
        generated: list[Step] = []
        for generator in self.generators:
            produced = await maybe_await(generator.generator(ctx))
            # A lone step is accepted as well as a sequence
            generated.extend(flatten_steps([produced]))

        previous = None
        for step in generated:
            previous = await self._run_step(step, ctx, previous)

        return get_return_value(ctx)

    async def _run_step(self, step: Step, ctx: Any, previous: Any) -> Any:
        name = step_name(step)
        start = time.perf_counter()
        try:
            result = await maybe_await(step(ctx, previous))
        except Exception:
            record_step_execution(self.name, name, "failure")
            raise
        record_step_execution(self.name, name, "success")
        logger.debug(
            "Step completed",
            extra={"step": name, "duration_ms": int((time.perf_counter() - start) * 1000)},
        )
        return result

    async def _rollback(self, tx: Transaction, error: Exception) -> None:
        try:
            await tx.rollback_to_point(self.savepoint_name)
        except Exception as rollback_error:
            # Reported error stays the original failure
            record_rollback_failure(self.name)
            logger.error(
                "Rollback to savepoint failed",
                extra={
                    "savepoint": self.savepoint_name,
                    "error": str(rollback_error),
                    "original_error": str(error),
                },
                exc_info=rollback_error,
            )


def build(
    *items: Any,
    name: str | None = None,
    savepoint_name: str | None = None,
) -> TransactionMethod:
    """Compose steps into a reusable :class:`TransactionMethod`.

    Args:
        *items: Steps, lists/tuples of steps, or :func:`deferred` generators,
            in execution order. Generators run after all fixed steps.
        name: Label used in logs and metrics
        savepoint_name: Initial rollback point (defaults to settings)

    Raises:
        StepDefinitionError: If an item is none of the above.
    """
    steps: list[Step] = []
    generators: list[Deferred] = []
    for item in items:
        if isinstance(item, Deferred):
            generators.append(item)
        else:
            steps.extend(flatten_steps([item]))

    if name is None:
        if steps:
            name = step_name(steps[0])
        elif generators:
            name = generators[0].name
        else:
            name = "empty"

    return TransactionMethod(
        steps=steps,
        generators=generators,
        name=name,
        savepoint_name=savepoint_name or get_settings().savepoint_name,
    )
