"""Named WHERE-clause fragments and their composition."""

import threading
from typing import Any, Callable, Iterable, Mapping

from savepipe.config import get_settings
from savepipe.domain.errors import ConditionNotFoundError

Fragment = Callable[[Any], str]

DEFAULT_SEPARATOR = "AND "


def chain(*fragments: Fragment, separator: str = DEFAULT_SEPARATOR) -> Callable[[Any], str]:
    """Compose fragment functions into one WHERE-clause builder.

    Each fragment is followed by a space and every fragment but the first is
    preceded by ``separator``: ``chain(a, b)(p) == f"{a(p)} AND {b(p)} "``.
    """

    def build(params: Any) -> str:
        clause = ""
        for i, fragment in enumerate(fragments):
            clause += ("" if i == 0 else separator) + fragment(params) + " "
        return clause

    return build


class ConditionRegistry:
    """Name to fragment mapping; registering a name again replaces it."""

    def __init__(self, separator: str | None = None):
        self._separator = separator
        self._conditions: dict[str, Fragment] = {}
        self._lock = threading.Lock()

    @property
    def separator(self) -> str:
        """Configured separator, or the settings value read at chain time."""
        if self._separator is None:
            return get_settings().condition_separator
        return self._separator

    def register(self, conditions: Mapping[str, Fragment]) -> None:
        with self._lock:
            self._conditions.update(conditions)

    def get(self, name: str) -> Fragment:
        with self._lock:
            fragment = self._conditions.get(name)
        if fragment is None:
            raise ConditionNotFoundError(
                message=f"Condition not registered: {name}",
                name=name,
            )
        return fragment

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._conditions

    def chain(self, names: Iterable[str]) -> Callable[[Any], str]:
        """Resolve names now and return the composed clause builder."""
        return chain(*(self.get(name) for name in names), separator=self.separator)


# Process-wide registry; populate at startup
conditions = ConditionRegistry()


def register_conditions(mapping: Mapping[str, Fragment]) -> None:
    conditions.register(mapping)


def chain_conditions(names: Iterable[str]) -> Callable[[Any], str]:
    return conditions.chain(names)
