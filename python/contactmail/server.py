"""
Contactmail HTTP server.

Serves /contact/ submissions and static files, using stdlib http.server.
"""

from __future__ import annotations

import json
import logging
import signal
import smtplib
import sys
import threading
import urllib.parse
from email import policy
from email.parser import BytesParser
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Mapping, Optional, Sequence

from contactmail.config import Config, load_config
from contactmail.mailer import Mailer, SMTPConfig
from contactmail.message import Message
from contactmail.results import (
    ContactResult,
    DeliveryFailed,
    SpamRejected,
    Success,
    ValidationFailure,
)
from contactmail.spamcheck import SpamChecker

log = logging.getLogger(__name__)

CONTACT_PATH = "/contact/"
MAX_FORM_BYTES = 10 << 20


def handle_contact(
    form: Mapping[str, str], cfg: Config, checker: SpamChecker, mailer: Mailer
) -> ContactResult:
    """
    Run one submission through validation, spam check and delivery.

    Stops at the first failing step. The message is rendered once, so the
    spam service sees exactly what gets delivered.
    """
    msg = Message.from_form(dict(form))
    if not msg.validate():
        return ValidationFailure(dict(msg.errors))

    log.info("contact message:\n%s", json.dumps(msg.to_dict(), indent=2))

    rendered = msg.full_body(cfg.destemail)
    if not checker.check(rendered):
        return SpamRejected()

    try:
        mailer.deliver(msg.from_addr, rendered)
    except (smtplib.SMTPException, OSError, UnicodeError) as e:
        log.error(
            "Error delivering email to %s from %s via %s: %s",
            cfg.destemail, msg.from_addr, cfg.mail_addr, e,
        )
        return DeliveryFailed()

    return Success()


def first_values(qs: Dict[str, List[str]]) -> Dict[str, str]:
    return {k: v[0] for k, v in qs.items() if v}


def parse_multipart(content_type: str, raw: bytes) -> Dict[str, str]:
    """Text fields of a multipart/form-data body. File parts are skipped."""
    head = f"Content-Type: {content_type}\r\n\r\n".encode("latin-1", errors="replace")
    msg = BytesParser(policy=policy.HTTP).parsebytes(head + raw)
    form: Dict[str, str] = {}
    if not msg.is_multipart():
        return form
    for part in msg.iter_parts():
        if part.get_filename():
            continue
        name = part.get_param("name", header="content-disposition")
        if not name or name in form:
            continue
        payload = part.get_payload(decode=True) or b""
        form[name] = payload.decode(part.get_content_charset() or "utf-8", errors="replace")
    return form


class Handler(SimpleHTTPRequestHandler):
    """Contact endpoint plus static files from cfg.root."""

    server_version = "contactmail/0.1"

    def __init__(self, request, client_address, server: "ContactHTTP") -> None:
        super().__init__(request, client_address, server, directory=server.cfg.root)

    def log_message(self, format: str, *args) -> None:
        log.debug("%s - %s", self.address_string(), format % args)

    def _json(self, code: int, obj: dict) -> None:
        b = json.dumps(obj).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _is_contact(self) -> bool:
        path = urllib.parse.urlsplit(self.path).path
        return path == CONTACT_PATH.rstrip("/") or path.startswith(CONTACT_PATH)

    def _content_length(self) -> int:
        try:
            return int(self.headers.get("Content-Length") or "0")
        except ValueError:
            return 0

    def _read_body_form(self) -> Dict[str, str]:
        length = self._content_length()
        if length <= 0:
            return {}
        raw = self.rfile.read(length)
        ctype = self.headers.get_content_type()
        if ctype == "multipart/form-data":
            return parse_multipart(self.headers.get("Content-Type", ""), raw)
        if ctype == "application/x-www-form-urlencoded":
            qs = urllib.parse.parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
            return first_values(qs)
        return {}

    def _read_form(self) -> Dict[str, str]:
        """Query string values, overridden by values posted in the body."""
        query = urllib.parse.urlsplit(self.path).query
        form = first_values(urllib.parse.parse_qs(query, keep_blank_values=True))
        if self.command == "POST":
            form.update(self._read_body_form())
        return form

    def _handle_contact(self) -> None:
        if self.command == "POST" and self._content_length() > MAX_FORM_BYTES:
            return self.send_error(413, "form too large")
        srv = self.server
        result = handle_contact(self._read_form(), srv.cfg, srv.checker, srv.mailer)
        return self._json(200, result.to_dict())

    def do_GET(self) -> None:
        if self._is_contact():
            return self._handle_contact()
        return super().do_GET()

    def do_POST(self) -> None:
        if self._is_contact():
            return self._handle_contact()
        return self.send_error(404, "not found")


class ContactHTTP(ThreadingHTTPServer):
    """Threaded HTTP server with attached config, spam checker and mailer."""

    def __init__(
        self,
        addr: tuple,
        handler: type,
        cfg: Config,
        checker: SpamChecker,
        mailer: Mailer,
    ) -> None:
        super().__init__(addr, handler)
        self.cfg = cfg
        self.checker = checker
        self.mailer = mailer


def build_server(cfg: Config) -> ContactHTTP:
    checker = SpamChecker(nospam=cfg.nospam)
    mailer = Mailer(SMTPConfig(
        host=cfg.mailhost,
        port=cfg.mailport,
        user=cfg.mailuser,
        password=cfg.mailpass,
        dest_email=cfg.destemail,
    ))
    return ContactHTTP((cfg.listen, cfg.port), Handler, cfg, checker, mailer)


def main(argv: Optional[Sequence[str]] = None) -> None:
    cfg = load_config(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not cfg.destemail:
        print("warning: no destination mailbox set (CONTACT_DESTEMAIL)", file=sys.stderr)
    if cfg.nospam:
        print("spam check disabled", file=sys.stderr)

    httpd = build_server(cfg)

    def _sig(*_):
        # shutdown() blocks until serve_forever returns, which runs on this thread.
        threading.Thread(target=httpd.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _sig)
    signal.signal(signal.SIGTERM, _sig)

    print(f"contactmail listening on {cfg.listen}:{cfg.port}", file=sys.stderr)
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()


if __name__ == "__main__":
    main()
