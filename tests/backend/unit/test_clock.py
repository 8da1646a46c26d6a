import asyncio

from scattergories.backend.clock import TurnClock, TurnClockRegistry


def test_turn_clock_ticks_until_callback_declines() -> None:
    remaining = [3]
    sleeps: list[float] = []

    async def tick() -> bool:
        remaining[0] -= 1
        return remaining[0] > 0

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    ticks = asyncio.run(TurnClock(tick=tick, sleep=fake_sleep).run())

    assert ticks == 3
    assert sleeps == [1.0, 1.0, 1.0]


def test_registry_runs_one_clock_per_match() -> None:
    calls: list[str] = []

    async def scenario() -> tuple[bool, bool, bool]:
        release = asyncio.Event()

        async def tick() -> bool:
            calls.append("tick")
            await release.wait()
            return False

        async def no_sleep(_: float) -> None:
            return None

        registry = TurnClockRegistry()
        first = registry.start("match-1", TurnClock(tick=tick, sleep=no_sleep))
        second = registry.start("match-1", TurnClock(tick=tick, sleep=no_sleep))
        await asyncio.sleep(0)
        release.set()
        await asyncio.sleep(0.01)
        return first, second, registry.is_running("match-1")

    first, second, still_running = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert still_running is False
    assert calls == ["tick"]


def test_stop_all_cancels_running_clocks() -> None:
    async def scenario() -> bool:
        async def tick() -> bool:
            return True

        registry = TurnClockRegistry()
        registry.start("match-1", TurnClock(tick=tick, interval=60))
        await registry.stop_all()
        return registry.is_running("match-1")

    assert asyncio.run(scenario()) is False


def test_restart_replaces_running_clock() -> None:
    calls: list[str] = []

    async def scenario() -> bool:
        def tick_as(name: str):
            async def tick() -> bool:
                calls.append(name)
                return True

            return tick

        registry = TurnClockRegistry()
        registry.start("match-1", TurnClock(tick=tick_as("old"), interval=0.05))
        await registry.restart("match-1", TurnClock(tick=tick_as("new"), interval=0.01))
        await asyncio.sleep(0.05)
        running = registry.is_running("match-1")
        await registry.stop_all()
        return running

    assert asyncio.run(scenario()) is True
    assert calls
    assert set(calls) == {"new"}


def test_stop_reports_whether_a_clock_was_cancelled() -> None:
    async def scenario() -> tuple[bool, bool, bool]:
        async def tick() -> bool:
            return True

        registry = TurnClockRegistry()
        missing = await registry.stop("match-1")
        registry.start("match-1", TurnClock(tick=tick, interval=60))
        stopped = await registry.stop("match-1")
        return missing, stopped, registry.is_running("match-1")

    missing, stopped, still_running = asyncio.run(scenario())

    assert missing is False
    assert stopped is True
    assert still_running is False
