"""Domain entities - plain data carried through pipelines."""

from savepipe.domain.entities.result import (
    AutocompleteSuggestions,
    DynatablePage,
    QueryResult,
)

__all__ = [
    "AutocompleteSuggestions",
    "DynatablePage",
    "QueryResult",
]
