"""Tests for Mail API wire types and plain-text body extraction."""

from mercury.api.types import (
    Email,
    EmailListResponse,
    EmailUpdate,
    SendRequest,
    SendResponse,
    extract_plain_text,
)


# ── Email.from_dict ────────────────────────────────────────────────────────────


class TestEmailFromDict:
    def test_maps_known_fields(self) -> None:
        email = Email.from_dict({
            "id": 7,
            "message_id": "<abc@example.com>",
            "sender": "Alice <alice@example.com>",
            "recipient": "bob@example.com",
            "subject": "Hi",
            "received_at": "2026-02-27T09:00:00Z",
            "is_read": 1,
            "is_starred": 0,
            "folder": "inbox",
        })
        assert email.id == 7
        assert email.message_id == "<abc@example.com>"
        assert email.read is True
        assert email.starred is False

    def test_unknown_keys_are_ignored(self) -> None:
        email = Email.from_dict({"id": 1, "synced_at": "yesterday"})
        assert email.id == 1

    def test_null_values_fall_back_to_defaults(self) -> None:
        email = Email.from_dict({"id": "3", "message_id": None, "raw_email": None})
        assert email.id == 3
        assert email.message_id == ""
        assert email.raw_email == ""


class TestEmailListResponse:
    def test_from_dict(self) -> None:
        resp = EmailListResponse.from_dict({
            "emails": [{"id": 1}, {"id": 2}],
            "total": 10,
            "limit": 2,
            "offset": 4,
        })
        assert [e.id for e in resp.emails] == [1, 2]
        assert resp.total == 10
        assert resp.offset == 4

    def test_missing_emails_key(self) -> None:
        resp = EmailListResponse.from_dict({"total": 0})
        assert resp.emails == []


# ── Request payloads ───────────────────────────────────────────────────────────


class TestPayloads:
    def test_email_update_omits_unset_fields(self) -> None:
        assert EmailUpdate(is_read=True).to_dict() == {"is_read": True}
        assert EmailUpdate().to_dict() == {}

    def test_email_update_keeps_false(self) -> None:
        assert EmailUpdate(is_starred=False).to_dict() == {"is_starred": False}

    def test_send_request_minimal(self) -> None:
        req = SendRequest(to="bob@example.com", subject="Hi", text="Body")
        assert req.to_dict() == {"to": "bob@example.com", "subject": "Hi", "text": "Body"}

    def test_send_request_with_from_and_headers(self) -> None:
        req = SendRequest(
            to="bob@example.com",
            subject="Hi",
            from_="me@example.com",
            headers={"In-Reply-To": "<x@y>"},
        )
        payload = req.to_dict()
        assert payload["from"] == "me@example.com"
        assert payload["headers"] == {"In-Reply-To": "<x@y>"}
        assert "text" not in payload

    def test_send_response_reads_camel_case_id(self) -> None:
        resp = SendResponse.from_dict({"success": True, "messageId": "m-1"})
        assert resp.success is True
        assert resp.message_id == "m-1"
        assert resp.error is None


# ── Body extraction ────────────────────────────────────────────────────────────


class TestBody:
    def test_empty_raw_gives_empty_body(self) -> None:
        assert Email(id=1, raw_email="   ").body() == ""

    def test_no_content_type_returns_trimmed_body(self) -> None:
        raw = "From: a@example.com\nSubject: Hi\n\n  Hello there  \n"
        assert Email(id=1, raw_email=raw).body() == "Hello there"

    def test_text_plain(self) -> None:
        raw = "Content-Type: text/plain; charset=utf-8\n\nPlain body\n\n"
        assert extract_plain_text(raw) == "Plain body"

    def test_multipart_prefers_text_plain(self, raw_multipart: str) -> None:
        assert extract_plain_text(raw_multipart) == "Lunch at noon?"

    def test_nested_multipart_is_searched_depth_first(self) -> None:
        raw = (
            "Content-Type: multipart/mixed; boundary=outer\n"
            "\n"
            "--outer\n"
            "Content-Type: multipart/alternative; boundary=inner\n"
            "\n"
            "--inner\n"
            "Content-Type: text/plain\n"
            "\n"
            "First plain part\n"
            "--inner\n"
            "Content-Type: text/html\n"
            "\n"
            "<b>html</b>\n"
            "--inner--\n"
            "--outer\n"
            "Content-Type: text/plain\n"
            "\n"
            "Attachment text\n"
            "--outer--\n"
        )
        assert extract_plain_text(raw) == "First plain part"

    def test_part_without_content_type_counts_as_plain(self) -> None:
        raw = (
            "Content-Type: multipart/mixed; boundary=b\n"
            "\n"
            "--b\n"
            "\n"
            "Untyped part\n"
            "--b--\n"
        )
        assert extract_plain_text(raw) == "Untyped part"

    def test_multipart_without_plain_falls_back_to_raw_body(self) -> None:
        raw = (
            "Content-Type: multipart/alternative; boundary=b\n"
            "\n"
            "--b\n"
            "Content-Type: text/html\n"
            "\n"
            "<p>only html</p>\n"
            "--b--\n"
        )
        body = extract_plain_text(raw)
        assert body.startswith("--b")
        assert "<p>only html</p>" in body

    def test_multipart_without_boundary_falls_back_to_raw_body(self) -> None:
        raw = "Content-Type: multipart/mixed\n\nloose text\n"
        assert extract_plain_text(raw) == "loose text"

    def test_html_only_message_returns_raw_body(self) -> None:
        raw = "Content-Type: text/html\n\n<p>hi</p>\n"
        assert extract_plain_text(raw) == "<p>hi</p>"
