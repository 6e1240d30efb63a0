"""Typed extension points.

A `HookPoint` is a named list of (owner, handler) taps plus a composition
kind that fixes how the taps are invoked:

- BROADCAST: sync, every tap in order, results discarded.
- WATERFALL: sync, each tap receives the previous tap's return value.
- SERIES: async, taps awaited in order; the first failure stops the chain.
- SERIES_BAIL: async, taps awaited in order; the first answer that is not
  `Ok(None)` wins and later taps are skipped.
- PARALLEL: async, taps run concurrently; any failure fails the point.

Async taps report failure by returning `Err(ReleaseError)`; returning `None`
is read as `Ok(None)`. Exceptions raised by a tap propagate unchanged apart
from a note naming the plugin and the point (`HookPoint.origin`).
Plain (non-coroutine) functions may be tapped on async points as well.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Any

from autoship.core.result import Err, Ok, Result
from autoship.release.errors import ReleaseError

__all__ = ["HookKind", "HookPoint", "HookResult", "Tap", "exception_origin"]

HookResult = Result[None, ReleaseError]

_ORIGIN_PREFIX = "from plugin "


def exception_origin(e: BaseException) -> str | None:
    """The plugin and hook point a handler exception was raised from, if any."""
    for note in getattr(e, "__notes__", ()):
        if note.startswith(_ORIGIN_PREFIX):
            return note
    return None


class HookKind(Enum):
    BROADCAST = auto()
    WATERFALL = auto()
    SERIES = auto()
    SERIES_BAIL = auto()
    PARALLEL = auto()

    @property
    def is_async(self) -> bool:
        return self in {HookKind.SERIES, HookKind.SERIES_BAIL, HookKind.PARALLEL}


@dataclass(frozen=True, slots=True)
class Tap:
    owner: str
    handler: Callable[..., Any]


class HookPoint[R]:
    """A single extension point.

    `R` is the value type threaded through a WATERFALL point or answered by a
    SERIES_BAIL point; it is unused by the other kinds.
    """

    def __init__(self, name: str, kind: HookKind) -> None:
        self.name = name
        self.kind = kind
        self._taps: list[Tap] = []

    def __repr__(self) -> str:
        owners = ", ".join(t.owner for t in self._taps)
        return f"HookPoint({self.name!r}, {self.kind.name}, [{owners}])"

    @property
    def taps(self) -> tuple[Tap, ...]:
        return tuple(self._taps)

    def tap(self, owner: str, handler: Callable[..., Any]) -> None:
        """Register `handler` on behalf of plugin `owner`, after existing taps."""
        self._taps.append(Tap(owner=owner, handler=handler))

    def is_used(self) -> bool:
        return bool(self._taps)

    # Sync kinds

    def call(self, *args: Any) -> None:
        self._require(HookKind.BROADCAST)
        for t in self._taps:
            self._run(t, args)

    def waterfall(self, initial: R, *args: Any) -> R:
        self._require(HookKind.WATERFALL)
        value = initial
        for t in self._taps:
            value = self._run(t, (value, *args))
        return value

    # Async kinds

    async def promise(self, *args: Any) -> HookResult:
        """Run a SERIES or PARALLEL point."""
        if self.kind is HookKind.SERIES:
            for t in self._taps:
                outcome = await self._invoke(t, args)
                if isinstance(outcome, Err):
                    return outcome
            return Ok(None)

        self._require(HookKind.PARALLEL)
        outcomes = await asyncio.gather(*(self._invoke(t, args) for t in self._taps))
        for outcome in outcomes:
            if isinstance(outcome, Err):
                return outcome
        return Ok(None)

    async def bail(self, *args: Any) -> Result[R | None, ReleaseError]:
        """Run a SERIES_BAIL point; Ok(None) means no tap had an opinion."""
        self._require(HookKind.SERIES_BAIL)
        for t in self._taps:
            outcome = await self._invoke(t, args)
            if isinstance(outcome, Err) or outcome.value is not None:
                return outcome
        return Ok(None)

    def origin(self, t: Tap) -> str:
        return f"{_ORIGIN_PREFIX}'{t.owner}' at {self.name}"

    def _run(self, t: Tap, args: tuple[Any, ...]) -> Any:
        try:
            return t.handler(*args)
        except Exception as e:
            e.add_note(self.origin(t))
            raise

    async def _invoke(self, t: Tap, args: tuple[Any, ...]) -> Result[Any, ReleaseError]:
        raw = self._run(t, args)
        if inspect.isawaitable(raw):
            try:
                raw = await raw
            except Exception as e:
                e.add_note(self.origin(t))
                raise

        if raw is None:
            return Ok(None)
        if isinstance(raw, Err):
            error = raw.error
            if isinstance(error, ReleaseError) and error.hint is None:
                error = replace(error, hint=self.origin(t))
            return Err(error)
        if isinstance(raw, Ok):
            return raw
        if self.kind is HookKind.SERIES_BAIL:
            return Ok(raw)

        raise TypeError(
            f"{t.owner}: {self.name} handlers must return a Result or None, got {type(raw).__name__}"
        )

    def _require(self, kind: HookKind) -> None:
        if self.kind is not kind:
            raise TypeError(f"hook {self.name} is {self.kind.name}, not {kind.name}")
