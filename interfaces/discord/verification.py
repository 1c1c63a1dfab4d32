from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from discord_interactions import verify_key


logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature-ed25519"
TIMESTAMP_HEADER = "x-signature-timestamp"


@dataclass
class VerificationResult:
    is_valid: bool
    interaction: Optional[dict] = None


INVALID = VerificationResult(is_valid=False)


def verify_discord_request(
    raw_body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
    public_key: str,
    max_age_seconds: Optional[int] = 300,
    now: Optional[float] = None,
) -> VerificationResult:
    """
    Check the Ed25519 signature Discord attaches to every interaction.

    Fails closed: a missing header, a stale or malformed timestamp, a bad
    signature or a body that is not a JSON object all yield an invalid
    result. The parsed payload is only returned for valid requests.
    """

    if not signature or not timestamp:
        logger.warning("Missing signature or timestamp headers")
        return INVALID

    if max_age_seconds is not None:
        current = time.time() if now is None else now
        try:
            is_fresh = abs(current - int(timestamp)) <= max_age_seconds
        except (ValueError, OverflowError):
            logger.warning("Malformed signature timestamp %r", timestamp[:32])
            return INVALID
        if not is_fresh:
            logger.warning("Stale interaction timestamp %s", timestamp[:32])
            return INVALID

    if not verify_key(raw_body, signature, timestamp, public_key):
        logger.warning("Invalid request signature")
        return INVALID

    try:
        interaction = json.loads(raw_body)
    except ValueError:
        logger.warning("Signed body is not valid JSON")
        return INVALID
    if not isinstance(interaction, dict):
        return INVALID

    return VerificationResult(is_valid=True, interaction=interaction)
