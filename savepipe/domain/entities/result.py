"""Query result and the views the result guard produces."""

from dataclasses import dataclass, field
from typing import Any, TypedDict


@dataclass
class QueryResult:
    """Rows and row count of one executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]]) -> "QueryResult":
        return cls(rows=rows, row_count=len(rows))


class DynatablePage(TypedDict):
    """Payload for a jQuery Dynatable server-side page.

    Keys are the widget's JSON contract and stay camelCase.
    """

    records: list[dict[str, Any]]
    queryRecordCount: int
    totalRecordCount: Any


class AutocompleteSuggestions(TypedDict):
    """Payload for a jQuery Autocomplete lookup."""

    suggestions: list[Any]
