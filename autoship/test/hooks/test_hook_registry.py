from __future__ import annotations

import asyncio

import pytest

from autoship.core.result import Err, Ok
from autoship.hooks import HookKind, HookPoint, exception_origin, make_hooks
from autoship.release.errors import ReleaseError


def _boom(message: str = "boom") -> Err[ReleaseError]:
    return Err(ReleaseError(kind="hook_failed", message=message))


def test_broadcast_calls_taps_in_registration_order() -> None:
    seen: list[str] = []
    point: HookPoint[None] = HookPoint("before_run", HookKind.BROADCAST)
    point.tap("a", lambda value: seen.append(f"a:{value}"))
    point.tap("b", lambda value: seen.append(f"b:{value}"))

    point.call(1)

    assert seen == ["a:1", "b:1"]


def test_waterfall_threads_value_through_taps() -> None:
    point: HookPoint[int] = HookPoint("modify_config", HookKind.WATERFALL)
    point.tap("double", lambda v: v * 2)
    point.tap("inc", lambda v: v + 1)

    assert point.waterfall(5) == 11


def test_waterfall_without_taps_returns_initial() -> None:
    point: HookPoint[str] = HookPoint("modify_config", HookKind.WATERFALL)
    assert point.waterfall("same") == "same"


def test_series_stops_on_first_failure() -> None:
    seen: list[str] = []

    async def first() -> None:
        seen.append("first")

    async def second() -> Err[ReleaseError]:
        seen.append("second")
        return _boom()

    point: HookPoint[None] = HookPoint("before_commit_changelog", HookKind.SERIES)
    point.tap("one", first)
    point.tap("two", second)
    point.tap("three", lambda: seen.append("third"))

    result = asyncio.run(point.promise())

    assert isinstance(result, Err)
    assert seen == ["first", "second"]


def test_failure_gets_owner_hint() -> None:
    point: HookPoint[None] = HookPoint("publish", HookKind.PARALLEL)
    point.tap("npm", lambda: _boom("registry down"))

    result = asyncio.run(point.promise())

    assert isinstance(result, Err)
    assert result.error.hint is not None
    assert "npm" in result.error.hint
    assert "publish" in result.error.hint


def test_parallel_runs_taps_concurrently() -> None:
    order: list[str] = []

    async def slow() -> None:
        order.append("slow:start")
        await asyncio.sleep(0.01)
        order.append("slow:end")

    async def fast() -> None:
        order.append("fast:start")
        order.append("fast:end")

    point: HookPoint[None] = HookPoint("after_release", HookKind.PARALLEL)
    point.tap("slow", slow)
    point.tap("fast", fast)

    result = asyncio.run(point.promise())

    assert isinstance(result, Ok)
    assert order.index("fast:end") < order.index("slow:end")


def test_parallel_reports_failure_after_all_taps_ran() -> None:
    ran: list[str] = []

    async def ok() -> None:
        await asyncio.sleep(0)
        ran.append("ok")

    point: HookPoint[None] = HookPoint("version", HookKind.PARALLEL)
    point.tap("bad", lambda: _boom())
    point.tap("good", ok)

    result = asyncio.run(point.promise())

    assert isinstance(result, Err)
    assert ran == ["ok"]


def test_series_bail_first_answer_wins() -> None:
    seen: list[str] = []

    def none() -> None:
        seen.append("none")

    async def answer() -> str:
        seen.append("answer")
        return "1.2.3"

    point: HookPoint[str] = HookPoint("get_previous_version", HookKind.SERIES_BAIL)
    point.tap("empty", none)
    point.tap("tags", answer)
    point.tap("never", lambda: seen.append("never"))

    result = asyncio.run(point.bail())

    assert result == Ok("1.2.3")
    assert seen == ["none", "answer"]


def test_series_bail_without_answer_is_ok_none() -> None:
    point: HookPoint[str] = HookPoint("get_author", HookKind.SERIES_BAIL)
    point.tap("nobody", lambda: None)

    assert asyncio.run(point.bail()) == Ok(None)


def test_handler_exceptions_propagate() -> None:
    def crash() -> None:
        raise RuntimeError("plugin bug")

    point: HookPoint[None] = HookPoint("after_version", HookKind.PARALLEL)
    point.tap("buggy", crash)

    with pytest.raises(RuntimeError, match="plugin bug") as exc:
        asyncio.run(point.promise())

    assert exception_origin(exc.value) == "from plugin 'buggy' at after_version"


def test_sync_handler_exceptions_name_their_plugin() -> None:
    def crash(config: object) -> object:
        raise KeyError("owner")

    point: HookPoint[object] = HookPoint("modify_config", HookKind.WATERFALL)
    point.tap("npm", crash)

    with pytest.raises(KeyError) as exc:
        point.waterfall(object())

    assert exception_origin(exc.value) == "from plugin 'npm' at modify_config"
    assert exception_origin(ValueError("unrelated")) is None


def test_series_rejects_non_result_return() -> None:
    point: HookPoint[None] = HookPoint("after_add_to_changelog", HookKind.SERIES)
    point.tap("odd", lambda: 42)

    with pytest.raises(TypeError):
        asyncio.run(point.promise())


def test_wrong_invocation_for_kind_is_rejected() -> None:
    point: HookPoint[None] = HookPoint("before_run", HookKind.BROADCAST)
    with pytest.raises(TypeError):
        asyncio.run(point.bail())
    with pytest.raises(TypeError):
        point.waterfall(None)


def test_is_used() -> None:
    hooks = make_hooks()
    assert not hooks.canary.is_used()
    hooks.canary.tap("npm", lambda bump, suffix: f"1.0.0-canary{suffix}")
    assert hooks.canary.is_used()


def test_make_hooks_kinds() -> None:
    hooks = make_hooks()
    assert hooks.modify_config.kind is HookKind.WATERFALL
    assert hooks.before_run.kind is HookKind.BROADCAST
    assert hooks.before_commit_changelog.kind is HookKind.SERIES
    assert hooks.publish.kind is HookKind.PARALLEL
    assert hooks.after_release.kind is HookKind.PARALLEL
    assert hooks.after_ship_it.kind is HookKind.BROADCAST
    assert hooks.canary.kind is HookKind.SERIES_BAIL
    assert len(hooks.points()) == 15
    assert all(not p.is_used() for p in hooks.points())
