"""
Contactmail: contact form to email relay.

A website posts its "contact us" form here. Contactmail:
- Validates the sender address and message body
- Optionally screens the rendered email with a remote spam checker
- Delivers it through an SMTP relay to one fixed mailbox

Every request stands alone: nothing is stored and nothing is retried.
"""

__version__ = "0.1.0"

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

__all__ = [
    "Config",
    "load_config",
    "Mailer",
    "SMTPConfig",
    "Message",
    "ContactResult",
    "DeliveryFailed",
    "SpamRejected",
    "Success",
    "ValidationFailure",
    "SpamChecker",
]
