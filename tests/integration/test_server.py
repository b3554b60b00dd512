"""Integration tests for the rate-limited server."""

from __future__ import annotations

import asyncio

import aiohttp

from leakyloop.poller.loop import Poller
from leakyloop.server.app import LimiterSettings, create_app
from leakyloop.server.collector import Collector

# Three full-size requests per client before the bucket is full
SMALL = LimiterSettings(capacity=(1 << 20) * 3, rate=1.0, prune_interval=1.0)


class TestHelloEndpoint:
    async def test_hello(self, start_app):
        base_url = await start_app(create_app())

        async with aiohttp.ClientSession() as session, session.get(f"{base_url}/hello") as resp:
            assert resp.status == 200
            assert await resp.json() == {"message": "Hello world!"}


class TestRateLimiting:
    async def test_rejects_once_bucket_is_full(self, start_app):
        base_url = await start_app(create_app(settings=SMALL))

        statuses = []
        async with aiohttp.ClientSession() as session:
            for _ in range(4):
                async with session.get(f"{base_url}/hello") as resp:
                    statuses.append(resp.status)
                    body = await resp.json()

        assert statuses == [200, 200, 200, 429]
        assert body == {"message": "Try again after sometime!"}

    async def test_default_settings_allow_ten(self, start_app):
        base_url = await start_app(create_app())

        statuses = []
        async with aiohttp.ClientSession() as session:
            for _ in range(11):
                async with session.get(f"{base_url}/hello") as resp:
                    statuses.append(resp.status)

        assert statuses == [200] * 10 + [429]

    async def test_paths_have_separate_buckets(self, start_app):
        base_url = await start_app(create_app(settings=SMALL))

        async with aiohttp.ClientSession() as session:
            for _ in range(3):
                async with session.get(f"{base_url}/hello") as resp:
                    assert resp.status == 200
            # Unknown path is charged to its own bucket, then 404s
            async with session.get(f"{base_url}/missing") as resp:
                assert resp.status == 404

    async def test_explicit_general_user_type(self, start_app):
        base_url = await start_app(create_app(settings=SMALL))

        async with (
            aiohttp.ClientSession() as session,
            session.get(f"{base_url}/hello", headers={"user-type": "gen-user"}) as resp,
        ):
            assert resp.status == 200

    async def test_unknown_user_type_rejected(self, start_app):
        collector = Collector()
        base_url = await start_app(create_app(collector=collector, settings=SMALL))

        async with (
            aiohttp.ClientSession() as session,
            session.get(f"{base_url}/hello", headers={"user-type": "admin"}) as resp,
        ):
            assert resp.status == 400
            assert await resp.json() == {"message": "Unknown user type: admin"}

        assert len(collector) == 0

    async def test_buckets_tracked_per_client(self, start_app):
        collector = Collector()
        base_url = await start_app(create_app(collector=collector, settings=SMALL))

        async with aiohttp.ClientSession() as session:
            for path in ("/hello", "/hello", "/other"):
                async with session.get(f"{base_url}{path}"):
                    pass

        assert len(collector) == 2


class TestPruning:
    async def test_drained_buckets_pruned(self, start_app, fake_clock):
        collector = Collector(clock=fake_clock)
        settings = LimiterSettings(capacity=(1 << 20) * 3, rate=float(1 << 20), prune_interval=0.01)
        base_url = await start_app(create_app(collector=collector, settings=settings))

        async with aiohttp.ClientSession() as session, session.get(f"{base_url}/hello") as resp:
            assert resp.status == 200
        assert len(collector) == 1

        fake_clock.advance(1.0)
        for _ in range(100):
            if len(collector) == 0:
                break
            await asyncio.sleep(0.01)
        assert len(collector) == 0


class TestPollerAgainstServer:
    async def test_poller_prints_rejections_and_continues(self, start_app):
        """Rate-limit errors are printed as bodies; polling keeps going."""
        base_url = await start_app(create_app(settings=SMALL))
        lines: list[str] = []

        poller = Poller(f"{base_url}/hello", delay=0.0, write_line=lines.append)
        await poller.run(max_iterations=5)

        assert lines[0::2] == ["0", "1", "2", "3", "4"]
        assert lines[1::2] == [
            '{"message":"Hello world!"}',
            '{"message":"Hello world!"}',
            '{"message":"Hello world!"}',
            '{"message":"Try again after sometime!"}',
            '{"message":"Try again after sometime!"}',
        ]
        assert poller.stats.summary().status_counts == {200: 3, 429: 2}
