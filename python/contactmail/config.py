"""
Contactmail configuration: environment variables overridden by flags.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

PASSWORD_ENV = "CONTACT_MAILPASS"


@dataclass(frozen=True)
class Config:
    """Server configuration. Built once at startup, read-only after."""
    listen: str
    port: int
    root: str
    nospam: bool
    mailhost: str
    mailport: int
    mailuser: str
    mailpass: str
    destemail: str

    @property
    def mail_addr(self) -> str:
        return f"{self.mailhost}:{self.mailport}"


def env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    """Integer from the environ; unset or unparsable values give the default."""
    try:
        return int(environ.get(key, ""))
    except ValueError:
        return default


def env_str(environ: Mapping[str, str], key: str, default: str) -> str:
    return environ.get(key) or default


def env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    """
    Boolean from the environ.

    Unset or empty gives the default. Otherwise the value is true unless it
    is "false", "f" or "0".
    """
    val = environ.get(key, "")
    if not val:
        return default
    return val not in ("false", "f", "0")


def password_placeholder(environ: Mapping[str, str]) -> str:
    """What --help shows instead of the real password."""
    placeholder = f"${PASSWORD_ENV}"
    if environ.get(PASSWORD_ENV):
        placeholder += " (SET)"
    return placeholder


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="contactmail",
        description="Contact form to email relay",
    )
    ap.add_argument("--listen", default=env_str(environ, "CONTACT_LISTEN", "0.0.0.0"),
                    help="Listen address")
    ap.add_argument("--port", type=int, default=env_int(environ, "CONTACT_PORT", 3241),
                    help="HTTP port")
    ap.add_argument("--root", default=env_str(environ, "CONTACT_ROOT", "."),
                    help="Directory served for static files")
    ap.add_argument("--nospam", action=argparse.BooleanOptionalAction,
                    default=env_bool(environ, "CONTACT_NOSPAM", False),
                    help="Disable spam check")
    ap.add_argument("--mailhost", default=env_str(environ, "CONTACT_MAILHOST", "smtp.google.com"),
                    help="Host to send mail from")
    ap.add_argument("--mailport", type=int, default=env_int(environ, "CONTACT_MAILPORT", 587),
                    help="Port to send mail on")
    ap.add_argument("--mailuser", default=env_str(environ, "CONTACT_MAILUSER", ""),
                    help="Username for mailhost")
    # The real default never goes through argparse, so --help can't leak it.
    ap.add_argument("--mailpass", default=None,
                    help=f"Password for mailhost (default: {password_placeholder(environ)})")
    ap.add_argument("--destemail", default=env_str(environ, "CONTACT_DESTEMAIL", ""),
                    help="Destination mailbox")
    return ap


def load_config(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Parse flags over the environment into a Config."""
    if environ is None:
        environ = os.environ
    args = build_parser(environ).parse_args(argv)

    mailpass = args.mailpass
    if mailpass is None:
        mailpass = env_str(environ, PASSWORD_ENV, "")

    return Config(
        listen=args.listen,
        port=args.port,
        root=args.root,
        nospam=args.nospam,
        mailhost=args.mailhost,
        mailport=args.mailport,
        mailuser=args.mailuser,
        mailpass=mailpass,
        destemail=args.destemail,
    )
