# src/taskline/cli/router.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class DuplicatePatternError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class RouteMatch(Generic[T]):
    tag: T
    fields: dict[str, str | None]


class CommandRouter(Generic[T]):
    """
    Maps free text to every registered tag whose pattern fully matches it.

    The router does not pick a winner: callers decide what more than one
    match means.
    """

    def __init__(self) -> None:
        self._routes: list[tuple[re.Pattern[str], T]] = []

    def register(self, pattern: re.Pattern[str] | str, tag: T) -> None:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        if any(existing == compiled for existing, _ in self._routes):
            raise DuplicatePatternError(
                f"Attempted to add Pattern {compiled.pattern!r} which already exists"
            )
        self._routes.append((compiled, tag))

    def __len__(self) -> int:
        return len(self._routes)

    def match(self, line: str) -> list[RouteMatch[T]]:
        text = line.strip()
        results: list[RouteMatch[T]] = []
        for pattern, tag in self._routes:
            m = pattern.fullmatch(text)
            if m is not None:
                results.append(RouteMatch(tag=tag, fields=m.groupdict()))
        if len(results) > 1:
            logger.debug("Input matched %d routes: %s", len(results), [r.tag for r in results])
        return results
