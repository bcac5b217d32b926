import asyncio
import dataclasses
from datetime import timedelta

import pytest
from temporalio.testing import ActivityEnvironment

from photo_pipeline.activities.common.utils import auto_heartbeater


async def test_auto_heartbeater_beats_while_running():
    env = ActivityEnvironment()
    env.info = dataclasses.replace(env.info, heartbeat_timeout=timedelta(milliseconds=30))
    heartbeats = []
    env.on_heartbeat = lambda *details: heartbeats.append(details)

    @auto_heartbeater
    async def slow_activity():
        await asyncio.sleep(0.1)
        return "done"

    assert await env.run(slow_activity) == "done"
    assert len(heartbeats) >= 2


async def test_auto_heartbeater_outside_activity():
    @auto_heartbeater
    async def quick(value):
        return value * 2

    assert await quick(21) == 42


async def test_auto_heartbeater_propagates_errors():
    @auto_heartbeater
    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await ActivityEnvironment().run(failing)
