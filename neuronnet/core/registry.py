"""Name/index registries for the pluggable strategy families."""

from __future__ import annotations

from typing import Callable, Dict, Generic, List, TypeVar

from .errors import InvalidConfiguration

T = TypeVar("T")


class StrategyRegistry(Generic[T]):
    """Map variant names to factories, with stable display indices.

    Indices follow registration order, so a configuration surface can show the
    variants as a list and round-trip a selection through :meth:`index` and
    :meth:`create` without inspecting instance types.
    """

    def __init__(self, family: str) -> None:
        self.family = family
        self._factories: Dict[str, Callable[..., T]] = {}
        self._order: List[str] = []

    def register(self, name: str, factory: Callable[..., T]) -> None:
        if name not in self._factories:
            self._order.append(name)
        self._factories[name] = factory

    def names(self) -> List[str]:
        return list(self._order)

    def index(self, name: str) -> int:
        try:
            return self._order.index(name)
        except ValueError as exc:
            raise InvalidConfiguration(self._unknown(name)) from exc

    def name_at(self, index: int) -> str:
        if not 0 <= index < len(self._order):
            raise InvalidConfiguration(
                f"Unknown {self.family} index {index}; expected 0..{len(self._order) - 1}"
            )
        return self._order[index]

    def create(self, key: str | int, **options: object) -> T:
        """Build the variant named (or indexed) by ``key``."""

        name = self.name_at(key) if isinstance(key, int) else str(key)
        if name not in self._factories:
            raise InvalidConfiguration(self._unknown(name))
        try:
            return self._factories[name](**options)
        except TypeError as exc:
            given = ", ".join(sorted(options)) or "none"
            raise InvalidConfiguration(
                f"Invalid options for {self.family} {name!r} (given: {given}): {exc}"
            ) from exc

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def _unknown(self, name: str) -> str:
        available = ", ".join(self._order)
        return f"Unknown {self.family} {name!r}. Available: {available}"


__all__ = ["StrategyRegistry"]
