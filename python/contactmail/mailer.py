"""
Contactmail delivery layer: SMTP submission to a single mailbox.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass

log = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True)
class SMTPConfig:
    """SMTP relay and the one mailbox every message goes to."""
    host: str
    port: int
    user: str
    password: str
    dest_email: str


class Mailer:
    """Delivers rendered messages with stdlib smtplib. One attempt, no retry."""

    def __init__(self, smtp: SMTPConfig, timeout: int = 20) -> None:
        self.smtp = smtp
        self.timeout = timeout

    def _login(self, s: smtplib.SMTP, tls: bool) -> None:
        """AUTH PLAIN, refused unless the link is encrypted or local."""
        if not tls and self.smtp.host not in LOCAL_HOSTS:
            raise smtplib.SMTPException("refusing to send credentials over unencrypted connection")
        if not s.has_extn("auth"):
            raise smtplib.SMTPException("server doesn't support AUTH")
        s.user, s.password = self.smtp.user, self.smtp.password
        s.auth("PLAIN", s.auth_plain)

    def deliver(self, sender: str, rendered: str) -> None:
        """
        Submit a rendered message from sender to the destination mailbox.

        STARTTLS is used whenever the server offers it. With a username
        configured, AUTH PLAIN is mandatory. Non-ASCII senders need SMTPUTF8.
        smtplib.SMTPException and OSError propagate unchanged.
        """
        to = [self.smtp.dest_email]
        addr = f"{self.smtp.host}:{self.smtp.port}"
        log.info("Sending mail to %s from %s to %s", addr, sender, to)

        # smtplib raises SMTPNotSupportedError when the server lacks SMTPUTF8.
        options = [] if sender.isascii() else ["SMTPUTF8"]

        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.timeout) as s:
            s.ehlo()
            tls = False
            if s.has_extn("starttls"):
                s.starttls()
                s.ehlo()
                tls = True
            if self.smtp.user:
                self._login(s, tls)
            s.sendmail(sender, to, rendered.encode("utf-8"), mail_options=options)
