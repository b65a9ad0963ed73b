"""Result guard - normalize raw query results into typed views.

Every shape is null-safe: a missing result (or a missing first row, for the
shapes that read it) normalizes to ``None`` or an empty default instead of
raising, so a callback can forward ``(error, shaped)`` without inspecting
the result first.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping

from savepipe.domain.entities import AutocompleteSuggestions, DynatablePage
from savepipe.domain.errors import GuardConfigurationError
from savepipe.domain.protocols import ResultLike


@dataclass(frozen=True)
class GuardOptions:
    """Selects how a result is shaped."""

    type: str = "rows"
    prop: str | None = None
    only_err: bool = False


def _field(row: Any, name: str | None) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _first(result: Any) -> Any:
    rows = result.rows
    return rows[0] if rows else None


def _row_count(result: Any) -> int | None:
    count = getattr(result, "row_count", None)
    if count is None:
        count = getattr(result, "rowcount", None)
    return count


def _rows(result: Any, options: GuardOptions) -> Any:
    return list(result.rows) if result is not None else None


def _first_row(result: Any, options: GuardOptions) -> Any:
    return _first(result) if result is not None else None


def _count(result: Any, options: GuardOptions) -> int | None:
    return _row_count(result) if result is not None else None


def _prop_first(result: Any, options: GuardOptions) -> Any:
    row = _first(result) if result is not None else None
    return _field(row, options.prop) if row is not None else None


def _pluck(result: Any, options: GuardOptions) -> list[Any] | None:
    if result is None:
        return None
    return [_field(row, options.prop) for row in result.rows]


def _dynatable(result: Any, options: GuardOptions) -> DynatablePage | None:
    row = _first(result) if result is not None else None
    if row is None:
        return None
    records = list(result.rows)
    return DynatablePage(
        records=records,
        queryRecordCount=len(records),
        totalRecordCount=_field(row, "total_count"),
    )


def _autocomplete(result: Any, options: GuardOptions) -> AutocompleteSuggestions:
    if result is None or _first(result) is None:
        return AutocompleteSuggestions(suggestions=[])
    if options.prop is None:
        return AutocompleteSuggestions(suggestions=list(result.rows))
    return AutocompleteSuggestions(
        suggestions=[_field(row, options.prop) for row in result.rows]
    )


SHAPES: dict[str, Callable[[Any, GuardOptions], Any]] = {
    "rows": _rows,
    "first": _first_row,
    "count": _count,
    "propFirst": _prop_first,
    "pluck": _pluck,
    "dynatable": _dynatable,
    "autocomplete": _autocomplete,
}

# Option spellings accepted in mappings and keywords
ALIASES = {"onlyErr": "only_err"}

_OPTION_NAMES = frozenset(f.name for f in fields(GuardOptions))


def _normalize(values: Mapping[str, Any]) -> dict[str, Any]:
    normalized = {ALIASES.get(key, key): value for key, value in values.items()}
    unknown = sorted(set(normalized) - _OPTION_NAMES)
    if unknown:
        raise GuardConfigurationError(
            message=f"Unknown guard option(s): {', '.join(unknown)}",
            details={"known": sorted(_OPTION_NAMES)},
            guard_type=str(normalized.get("type", "")),
        )
    return normalized


def resolve_options(
    options: GuardOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> GuardOptions:
    """Build validated guard options from an instance, a mapping or keywords.

    Raises:
        GuardConfigurationError: If ``type`` names no known shape or an
            option name is not recognized.
    """
    overrides = _normalize(overrides)
    if options is None:
        resolved = GuardOptions(**overrides)
    elif isinstance(options, GuardOptions):
        resolved = replace(options, **overrides)
    else:
        resolved = GuardOptions(**{**_normalize(options), **overrides})

    if resolved.type not in SHAPES:
        raise GuardConfigurationError(
            message=f"Unknown guard type: {resolved.type!r}",
            details={"known": sorted(SHAPES)},
            guard_type=str(resolved.type),
        )
    return resolved


def shape(
    result: ResultLike | None,
    options: GuardOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Any:
    """Apply one normalization to a raw result."""
    resolved = resolve_options(options, **overrides)
    return SHAPES[resolved.type](result, resolved)


def guard(
    callback: Callable[..., Any],
    options: GuardOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Callable[..., Any]:
    """Wrap an ``(error, result)`` callback so it receives a shaped result.

    Options are validated here, so a bad ``type`` fails when the guard is
    built rather than when the first result arrives. Whatever the callback
    returns (including a coroutine) is passed back to the caller.

    Example:
        on_user = guard(reply, type="propFirst", prop="email")
        on_user(None, await conn.query(sql, params))
    """
    resolved = resolve_options(options, **overrides)
    handler = SHAPES[resolved.type]

    def wrapped(err: BaseException | None, result: Any = None) -> Any:
        if resolved.only_err:
            return callback(err)
        return callback(err, handler(result, resolved))

    return wrapped
