"""savepipe - atomic step pipelines over a transactional connection.

Usage:
    import savepipe

    await savepipe.init_db()

    create_order = savepipe.build(
        savepipe.query_step(INSERT_ORDER, lambda ctx: ctx.order, into="order_id", type="propFirst", prop="id"),
        savepipe.deferred(lambda ctx: [insert_line(line) for line in ctx.order["lines"]]),
    )
    order_id = await create_order(savepipe.StepContext())
"""

from savepipe.application.conditions import (
    ConditionRegistry,
    chain,
    chain_conditions,
    conditions,
    register_conditions,
)
from savepipe.application.guard import GuardOptions, guard, shape
from savepipe.application.pipelines import (
    Deferred,
    StepContext,
    TransactionMethod,
    build,
    current_transaction,
    deferred,
    query_step,
)
from savepipe.domain.entities import AutocompleteSuggestions, DynatablePage, QueryResult
from savepipe.infrastructure.database import (
    SqlAlchemyConnection,
    SqlAlchemyConnectionSource,
    Transaction,
    TransactionState,
    close_db,
    init,
    init_db,
)

__all__ = [
    # Pipelines
    "Deferred",
    "StepContext",
    "TransactionMethod",
    "build",
    "current_transaction",
    "deferred",
    "query_step",
    # Result guard
    "AutocompleteSuggestions",
    "DynatablePage",
    "GuardOptions",
    "QueryResult",
    "guard",
    "shape",
    # Conditions
    "ConditionRegistry",
    "chain",
    "chain_conditions",
    "conditions",
    "register_conditions",
    # Database
    "SqlAlchemyConnection",
    "SqlAlchemyConnectionSource",
    "Transaction",
    "TransactionState",
    "close_db",
    "init",
    "init_db",
]
