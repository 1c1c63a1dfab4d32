import unittest

import requests

from domain.errors import DiscordApiError, IdentityLookupError
from infrastructure.discord_api import DiscordRestClient

from doubles import FakeResponse, FakeSession


class DiscordRestClientTests(unittest.TestCase):
    def make_client(self, *responses, max_attempts=3):
        self.session = FakeSession(*responses)
        self.sleeps = []
        return DiscordRestClient(
            "1100",
            "bot-token",
            session=self.session,
            max_attempts=max_attempts,
            backoff_seconds=0.5,
            sleep=self.sleeps.append,
        )

    def test_fetch_bot_name_uses_given_token(self):
        client = self.make_client(FakeResponse(200, payload={"username": "helperbot"}))

        self.assertEqual(client.fetch_bot_name("other-token"), "helperbot")
        request = self.session.requests[0]
        self.assertEqual(request["method"], "GET")
        self.assertTrue(request["url"].endswith("/users/@me"))
        self.assertEqual(request["headers"]["Authorization"], "Bot other-token")

    def test_fetch_bot_name_failure(self):
        client = self.make_client(FakeResponse(401, text="401: Unauthorized"))

        with self.assertRaises(IdentityLookupError):
            client.fetch_bot_name("bad-token")

    def test_edit_original_response_patches_original_message(self):
        client = self.make_client(FakeResponse(200, payload={}))

        client.edit_original_response("tok", "done")

        request = self.session.requests[0]
        self.assertEqual(request["method"], "PATCH")
        self.assertEqual(
            request["url"],
            "https://discord.com/api/v10/webhooks/1100/tok/messages/@original",
        )
        self.assertEqual(request["json"], {"content": "done"})
        self.assertEqual(self.sleeps, [])

    def test_transient_failures_are_retried_with_backoff(self):
        client = self.make_client(
            requests.ConnectionError("reset"),
            FakeResponse(502),
            FakeResponse(200, payload={}),
        )

        client.edit_original_response("tok", "done")

        self.assertEqual(len(self.session.requests), 3)
        self.assertEqual(self.sleeps, [0.5, 1.0])

    def test_retries_are_bounded(self):
        client = self.make_client(FakeResponse(500), FakeResponse(500), max_attempts=2)

        with self.assertRaises(DiscordApiError) as ctx:
            client.edit_original_response("tok", "done")

        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(len(self.session.requests), 2)

    def test_client_errors_are_not_retried(self):
        client = self.make_client(FakeResponse(404, text="Unknown Webhook"))

        with self.assertRaises(DiscordApiError):
            client.edit_original_response("tok", "done")

        self.assertEqual(len(self.session.requests), 1)
        self.assertEqual(self.sleeps, [])

    def test_rate_limit_is_retried(self):
        client = self.make_client(FakeResponse(429), FakeResponse(200, payload={}))

        client.edit_original_response("tok", "done")

        self.assertEqual(len(self.session.requests), 2)

    def test_rate_limit_waits_at_least_retry_after(self):
        client = self.make_client(
            FakeResponse(429, headers={"Retry-After": "3"}),
            FakeResponse(200, payload={}),
        )

        client.edit_original_response("tok", "done")

        self.assertEqual(self.sleeps, [3.0])

    def test_rate_limit_reads_retry_after_from_body(self):
        client = self.make_client(
            FakeResponse(429, payload={"retry_after": 1.25}),
            FakeResponse(200, payload={}),
        )

        client.edit_original_response("tok", "done")

        self.assertEqual(self.sleeps, [1.25])

    def test_short_retry_after_keeps_backoff(self):
        client = self.make_client(
            FakeResponse(429, headers={"Retry-After": "0.1"}),
            FakeResponse(429, headers={"Retry-After": "nonsense"}),
            FakeResponse(200, payload={}),
        )

        client.edit_original_response("tok", "done")

        self.assertEqual(self.sleeps, [0.5, 1.0])


if __name__ == "__main__":
    unittest.main()
