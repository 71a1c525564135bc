"""
Contactmail spam screening against the Postmark spamcheck API.

http://spamcheck.postmarkapp.com/doc
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.request
from dataclasses import asdict, dataclass

log = logging.getLogger(__name__)

SPAMCHECK_URL = "http://spamcheck.postmarkapp.com/filter"


@dataclass(frozen=True)
class SpamCheckRequest:
    """Request body for the spamcheck API."""
    email: str            # full rendered message, headers included
    options: str = "long"  # "long" asks for the full report


@dataclass(frozen=True)
class SpamCheckResponse:
    """Decoded spamcheck reply. Only success drives behavior; the rest is logged."""
    success: bool
    message: str = ""
    report: str = ""
    score: str = ""

    @classmethod
    def from_dict(cls, obj: dict) -> "SpamCheckResponse":
        if not isinstance(obj, dict):
            raise ValueError(f"unexpected spamcheck reply: {obj!r}")
        return cls(
            success=bool(obj.get("success", False)),
            message=str(obj.get("message") or ""),
            report=str(obj.get("report") or ""),
            score=str(obj.get("score") or ""),
        )


def post_spamcheck(
    req: SpamCheckRequest, url: str = SPAMCHECK_URL, timeout: int = 10
) -> SpamCheckResponse:
    """
    POST a request to the spamcheck API and decode the reply.

    Raises OSError (URLError, HTTPError, timeouts) or http.client.HTTPException
    (malformed or truncated replies) on transport failure, and ValueError when
    the reply isn't the expected JSON.
    """
    body = json.dumps(asdict(req)).encode("utf-8")
    hreq = urllib.request.Request(
        url,
        data=body,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urllib.request.urlopen(hreq, timeout=timeout) as resp:
        return SpamCheckResponse.from_dict(json.loads(resp.read().decode("utf-8")))


class SpamChecker:
    """
    Spam verdicts for rendered messages.

    check() fails open: if the service can't be reached or answers garbage,
    the message is treated as not spam.
    """

    def __init__(self, nospam: bool = False, url: str = SPAMCHECK_URL, timeout: int = 10) -> None:
        self.nospam = nospam
        self.url = url
        self.timeout = timeout

    def check(self, rendered: str) -> bool:
        """True when the message may be sent (not spam)."""
        if self.nospam:
            return True

        try:
            resp = post_spamcheck(SpamCheckRequest(email=rendered), self.url, self.timeout)
        except (OSError, http.client.HTTPException, ValueError) as e:
            log.error("Error with spamcheck: %s", e)
            return True

        log.info("spamcheck result:\n%s", json.dumps(asdict(resp), indent=2))
        return resp.success
