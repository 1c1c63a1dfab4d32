import time
import unittest

from interfaces.discord.verification import verify_discord_request

from signing import DiscordSigner, command_payload, encode


class VerifyDiscordRequestTests(unittest.TestCase):
    def setUp(self) -> None:
        self.signer = DiscordSigner()
        self.now = time.time()
        self.timestamp = str(int(self.now))
        self.body = encode(command_payload("getcredit"))

    def verify(self, body, signature, timestamp, **kwargs):
        kwargs.setdefault("now", self.now)
        return verify_discord_request(body, signature, timestamp, self.signer.public_key, **kwargs)

    def test_valid_signature_returns_payload(self):
        result = self.verify(self.body, self.signer.sign(self.body, self.timestamp), self.timestamp)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.interaction["data"]["name"], "getcredit")

    def test_missing_headers_fail_closed(self):
        signature = self.signer.sign(self.body, self.timestamp)

        self.assertFalse(self.verify(self.body, None, self.timestamp).is_valid)
        self.assertFalse(self.verify(self.body, signature, None).is_valid)
        self.assertFalse(self.verify(self.body, "", "").is_valid)

    def test_tampered_body_is_rejected(self):
        signature = self.signer.sign(self.body, self.timestamp)
        tampered = encode(command_payload("getcredit", user_id="43"))

        result = self.verify(tampered, signature, self.timestamp)

        self.assertFalse(result.is_valid)
        self.assertIsNone(result.interaction)

    def test_signature_from_other_key_is_rejected(self):
        other = DiscordSigner()

        result = self.verify(self.body, other.sign(self.body, self.timestamp), self.timestamp)

        self.assertFalse(result.is_valid)

    def test_malformed_signature_is_rejected(self):
        self.assertFalse(self.verify(self.body, "not-hex", self.timestamp).is_valid)

    def test_stale_timestamp_is_rejected(self):
        old = str(int(self.now) - 3600)

        result = self.verify(self.body, self.signer.sign(self.body, old), old)

        self.assertFalse(result.is_valid)

    def test_oversized_timestamp_is_rejected(self):
        huge = "9" * 400

        result = self.verify(self.body, self.signer.sign(self.body, huge), huge)

        self.assertFalse(result.is_valid)

    def test_non_numeric_timestamp_is_rejected(self):
        result = self.verify(self.body, self.signer.sign(self.body, "soon"), "soon")

        self.assertFalse(result.is_valid)

    def test_staleness_check_can_be_disabled(self):
        old = str(int(self.now) - 3600)

        result = self.verify(self.body, self.signer.sign(self.body, old), old, max_age_seconds=None)

        self.assertTrue(result.is_valid)

    def test_non_object_body_is_rejected(self):
        body = b"[1, 2, 3]"

        result = self.verify(body, self.signer.sign(body, self.timestamp), self.timestamp)

        self.assertFalse(result.is_valid)


if __name__ == "__main__":
    unittest.main()
