"""Tests for contactmail.message module."""

import unittest
from unittest.mock import patch

from contactmail.message import (
    ERR_BODY,
    ERR_FROM,
    FALLBACK_HOST,
    Message,
    message_id,
)


class TestValidate(unittest.TestCase):
    """Test field validation."""

    def test_valid_message(self) -> None:
        msg = Message(from_addr="a@b.com", subject="Hi", body="Hello")
        self.assertTrue(msg.validate())
        self.assertEqual(msg.errors, {})

    def test_bad_from_addresses(self) -> None:
        for addr in ["", "not-an-email", "a@b", "@b.com", "a@.com", "a.b.com", "ab.c@d"]:
            with self.subTest(addr=addr):
                msg = Message(from_addr=addr, body="Hello")
                self.assertFalse(msg.validate())
                self.assertEqual(msg.errors, {"from": ERR_FROM})

    def test_blank_body(self) -> None:
        for body in ["", " ", "\n\t  \r\n"]:
            with self.subTest(body=body):
                msg = Message(from_addr="a@b.com", body=body)
                self.assertFalse(msg.validate())
                self.assertEqual(msg.errors, {"body": ERR_BODY})

    def test_both_fields_fail(self) -> None:
        msg = Message(from_addr="nope", subject="", body="   ")
        self.assertFalse(msg.validate())
        self.assertEqual(set(msg.errors), {"from", "body"})

    def test_subject_optional(self) -> None:
        msg = Message(from_addr="a@b.com", body="x")
        self.assertTrue(msg.validate())

    def test_validate_is_idempotent(self) -> None:
        msg = Message(from_addr="not-an-email", body="x")
        msg.validate()
        first = dict(msg.errors)
        msg.validate()
        self.assertEqual(msg.errors, first)

    def test_validate_resets_errors(self) -> None:
        msg = Message(from_addr="bad", body="x")
        self.assertFalse(msg.validate())
        msg.from_addr = "a@b.com"
        self.assertTrue(msg.validate())
        self.assertEqual(msg.errors, {})

    def test_from_form(self) -> None:
        msg = Message.from_form({"from": "a@b.com", "body": "Hello"})
        self.assertEqual(msg.from_addr, "a@b.com")
        self.assertEqual(msg.subject, "")
        self.assertEqual(msg.body, "Hello")


class TestFullBody(unittest.TestCase):
    """Test rendering as an email document."""

    def make(self, **kw) -> Message:
        fields = {"from_addr": "a@b.com", "subject": "Hi", "body": "Hello there"}
        fields.update(kw)
        return Message(**fields)

    def header_lines(self, doc: str) -> list:
        return doc.split("\r\n")[:6]

    def test_header_order(self) -> None:
        doc = self.make().full_body("dest@example.com", hostname="web1")
        names = [line.split(":", 1)[0] for line in self.header_lines(doc)]
        self.assertEqual(names, ["From", "To", "Reply-To", "Date", "Subject", "Message-Id"])

    def test_headers_and_body(self) -> None:
        doc = self.make().full_body("dest@example.com", hostname="web1")
        self.assertTrue(doc.startswith("From: a@b.com\r\nTo: dest@example.com\r\nReply-To: a@b.com\r\n"))
        self.assertIn("\r\nSubject: Hi\r\n", doc)
        self.assertTrue(doc.endswith("@web1>\r\nHello there"))

    def test_exactly_one_to_header(self) -> None:
        cases = [
            self.make(),
            self.make(from_addr="x@y.com\r\nTo: evil@example.com"),
            self.make(subject="hi\nTo: evil@example.com"),
        ]
        for msg in cases:
            with self.subTest(from_addr=msg.from_addr, subject=msg.subject):
                doc = msg.full_body("dest@example.com")
                head = doc.split("\r\n")[:6]
                to_lines = [line for line in head if line.startswith("To:")]
                self.assertEqual(to_lines, ["To: dest@example.com"])

    def test_message_id_changes_per_call(self) -> None:
        msg = self.make()
        first = msg.full_body("dest@example.com", hostname="web1")
        second = msg.full_body("dest@example.com", hostname="web1")
        mid = lambda doc: [l for l in doc.split("\r\n") if l.startswith("Message-Id:")][0]
        self.assertNotEqual(mid(first), mid(second))


class TestMessageID(unittest.TestCase):
    def test_format(self) -> None:
        mid = message_id("web1")
        self.assertTrue(mid.startswith("<"))
        self.assertTrue(mid.endswith("@web1>"))
        self.assertTrue(mid[1:-len("@web1>")].isdigit())

    @patch("contactmail.message.socket.gethostname")
    def test_hostname_fallback(self, mock_host) -> None:
        mock_host.side_effect = OSError("no hostname")
        self.assertTrue(message_id().endswith(f"@{FALLBACK_HOST}>"))

    @patch("contactmail.message.socket.gethostname")
    def test_empty_hostname_fallback(self, mock_host) -> None:
        mock_host.return_value = ""
        self.assertTrue(message_id().endswith(f"@{FALLBACK_HOST}>"))


if __name__ == "__main__":
    unittest.main()
