"""
Outcomes of a contact submission and their JSON shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

SPAM_REJECTED_MSG = "Sorry, this failed a spam check"
DELIVERY_FAILED_MSG = "Sorry, there was a problem sending email"


@dataclass(frozen=True)
class ValidationFailure:
    """One message per failing field, keyed by field name."""
    fields: Dict[str, str]

    def to_dict(self) -> dict:
        out: dict = dict(self.fields)
        out["success"] = False
        return out


@dataclass(frozen=True)
class SpamRejected:
    def to_dict(self) -> dict:
        return {"success": False, "form": SPAM_REJECTED_MSG}


@dataclass(frozen=True)
class DeliveryFailed:
    def to_dict(self) -> dict:
        return {"success": False, "form": DELIVERY_FAILED_MSG}


@dataclass(frozen=True)
class Success:
    def to_dict(self) -> dict:
        return {"success": True}


ContactResult = Union[ValidationFailure, SpamRejected, DeliveryFailed, Success]
