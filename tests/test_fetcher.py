import random
import unittest

import httpx

from noon_minutes.errors import FetchError
from noon_minutes.fetcher import USER_AGENTS, FetchClient, pick_user_agent

from .fixtures import RecordingSleep


class TestFetchClient(unittest.IsolatedAsyncioTestCase):
    async def test_returns_body_and_sends_pooled_user_agent(self):
        seen_agents = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_agents.append(request.headers["user-agent"])
            return httpx.Response(200, text="<html>ok</html>")

        client = FetchClient(transport=httpx.MockTransport(handler), sleep=RecordingSleep())
        for _ in range(5):
            self.assertEqual(await client.fetch("https://minutes.test/"), "<html>ok</html>")

        self.assertEqual(len(seen_agents), 5)
        for agent in seen_agents:
            self.assertIn(agent, USER_AGENTS)

    async def test_timeouts_exhaust_retries_with_linear_backoff(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            raise httpx.ReadTimeout("timed out", request=request)

        sleep = RecordingSleep()
        client = FetchClient(transport=httpx.MockTransport(handler), sleep=sleep)

        with self.assertRaises(FetchError) as ctx:
            await client.fetch("https://minutes.test/slow", max_retries=3, base_backoff_ms=100)

        self.assertEqual(len(calls), 3)
        self.assertEqual(len(sleep.calls), 3)
        self.assertAlmostEqual(sleep.calls[0], 0.1)
        self.assertAlmostEqual(sleep.calls[1], 0.2)
        self.assertAlmostEqual(sleep.calls[2], 0.3)
        self.assertAlmostEqual(sum(sleep.calls), 100 * (1 + 2 + 3) / 1000)
        self.assertEqual(ctx.exception.url, "https://minutes.test/slow")
        self.assertIsInstance(ctx.exception.last_cause, httpx.ReadTimeout)

    async def test_server_error_is_retried_until_success(self):
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses), text="body")

        sleep = RecordingSleep()
        client = FetchClient(
            transport=httpx.MockTransport(handler), sleep=sleep, max_retries=3, base_backoff_ms=50
        )

        self.assertEqual(await client.fetch("https://minutes.test/"), "body")
        self.assertEqual(len(sleep.calls), 1)
        self.assertAlmostEqual(sleep.calls[0], 0.05)

    async def test_non_2xx_status_fails_after_retries(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="missing")

        client = FetchClient(transport=httpx.MockTransport(handler), sleep=RecordingSleep(), max_retries=2)
        with self.assertRaises(FetchError) as ctx:
            await client.fetch("https://minutes.test/missing")
        self.assertIsInstance(ctx.exception.last_cause, httpx.HTTPStatusError)

    async def test_network_error_is_retryable(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text="recovered")

        client = FetchClient(transport=httpx.MockTransport(handler), sleep=RecordingSleep())
        self.assertEqual(await client.fetch("https://minutes.test/"), "recovered")
        self.assertEqual(len(attempts), 2)

    async def test_one_connection_pool_per_client_lifetime(self):
        seen_agents = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_agents.append(request.headers["user-agent"])
            return httpx.Response(200, text="ok")

        async with FetchClient(transport=httpx.MockTransport(handler), rng=random.Random(3)) as client:
            await client.fetch("https://minutes.test/a")
            http = client._client
            await client.fetch("https://minutes.test/b")
            self.assertIs(client._client, http)
        self.assertIsNone(client._client)
        self.assertTrue(http.is_closed)
        self.assertEqual(len(seen_agents), 2)
        self.assertTrue(all(agent in USER_AGENTS for agent in seen_agents))

    def test_rejects_zero_attempts(self):
        with self.assertRaises(ValueError):
            FetchClient(max_retries=0)


class TestUserAgentRotation(unittest.TestCase):
    def test_pick_user_agent_draws_from_pool(self):
        rng = random.Random(7)
        picked = {pick_user_agent(rng) for _ in range(200)}
        self.assertTrue(picked <= set(USER_AGENTS))
        # Uniform choice over five entries reaches every one of them in 200 draws.
        self.assertEqual(picked, set(USER_AGENTS))
