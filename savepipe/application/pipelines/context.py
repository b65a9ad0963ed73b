"""Context shared by the steps of one pipeline run."""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any

RETURN_VALUE = "return_value"


@dataclass
class StepContext:
    """Mutable record passed to every step of one run.

    Steps may set any attribute they like; ``return_value`` is what the
    pipeline hands back once the transaction commits.
    """

    return_value: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)


def get_value(ctx: Any, name: str) -> Any:
    if isinstance(ctx, MutableMapping):
        return ctx.get(name)
    return getattr(ctx, name, None)


def set_value(ctx: Any, name: str, value: Any) -> None:
    if isinstance(ctx, MutableMapping):
        ctx[name] = value
    else:
        setattr(ctx, name, value)


def get_return_value(ctx: Any) -> Any:
    return get_value(ctx, RETURN_VALUE)
