"""
Contact form submissions: validation and rendering as an email document.
"""

from __future__ import annotations

import random
import re
import socket
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Dict, Optional

FALLBACK_HOST = "unknown.host.com"

EMAIL_RE = re.compile(r".+@.+\..+")

ERR_FROM = "Please enter a valid email address"
ERR_BODY = "Please write a message"


def message_id(hostname: Optional[str] = None) -> str:
    """
    RFC-compatible Message-Id from a random int and the current host.

    Included in the headers to keep spam scores down.
    """
    if hostname is None:
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = ""
    return f"<{random.getrandbits(64)}@{hostname or FALLBACK_HOST}>"


def header_value(s: str) -> str:
    """Fold CR/LF out of a header value so it can't start a new header."""
    return " ".join(s.splitlines())


@dataclass
class Message:
    """A contact form submission that can be validated and rendered."""
    from_addr: str
    subject: str = ""
    body: str = ""
    errors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_form(cls, form: Dict[str, str]) -> "Message":
        return cls(
            from_addr=form.get("from", ""),
            subject=form.get("subject", ""),
            body=form.get("body", ""),
        )

    def validate(self) -> bool:
        """Check the fields, resetting errors. True when the message is valid."""
        self.errors = {}

        if not EMAIL_RE.search(self.from_addr):
            self.errors["from"] = ERR_FROM

        if not self.body.strip():
            self.errors["body"] = ERR_BODY

        return not self.errors

    def full_body(self, to: str, hostname: Optional[str] = None) -> str:
        """
        Full message document: headers followed by the raw body.

        Every call stamps a fresh Date and Message-Id, so render once per
        delivery and reuse the result.
        """
        headers = [
            ("From", self.from_addr),
            ("To", to),
            ("Reply-To", self.from_addr),
            ("Date", formatdate(localtime=True)),
            ("Subject", self.subject),
            ("Message-Id", message_id(hostname)),
        ]
        head = "".join(f"{name}: {header_value(value)}\r\n" for name, value in headers)
        return head + self.body

    def to_dict(self) -> dict:
        return {
            "from": self.from_addr,
            "subject": self.subject,
            "body": self.body,
            "errors": self.errors,
        }
