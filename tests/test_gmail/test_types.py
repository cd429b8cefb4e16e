"""Tests for the typed Gmail response views — missing fields must never raise."""

from typing import Any

from conftest import b64
from gmail_mcp.gmail.types import (
    DraftResult,
    EmailDraft,
    EmailMessage,
    FilterAction,
    FilterCriteria,
    GmailFilter,
    GmailLabel,
    Profile,
)


class TestEmailMessage:
    def test_full_message(self, plain_message: dict[str, Any]) -> None:
        m = EmailMessage.from_api(plain_message)
        assert m.id == "msg123"
        assert m.thread_id == "thread456"
        assert m.sender == "Alice Smith <alice@example.com>"
        assert m.recipient == "bob@example.com"
        assert m.subject == "Quick question"
        assert m.date == "Fri, 31 Jan 2025 10:00:00 -0500"
        assert m.body == "Hello World"
        assert m.labels == ["INBOX", "UNREAD"]
        assert m.is_unread is True

    def test_header_lookup_is_case_insensitive(self) -> None:
        m = EmailMessage.from_api(
            {"payload": {"headers": [{"name": "subject", "value": "lower"}]}}
        )
        assert m.subject == "lower"

    def test_empty_dict_defaults(self) -> None:
        m = EmailMessage.from_api({})
        assert m.id == ""
        assert m.thread_id == ""
        assert m.sender == ""
        assert m.subject == ""
        assert m.snippet == ""
        assert m.labels == []
        assert m.body == ""
        assert m.is_unread is False

    def test_null_fields_default(self) -> None:
        m = EmailMessage.from_api({"id": "x", "labelIds": None, "payload": None, "snippet": None})
        assert m.labels == []
        assert m.snippet == ""
        assert m.body == ""


class TestEmailDraft:
    def test_from_draft_get(self) -> None:
        draft = EmailDraft.from_api({
            "id": "d1",
            "message": {
                "payload": {
                    "mimeType": "text/plain",
                    "headers": [
                        {"name": "To", "value": "x@example.com"},
                        {"name": "Subject", "value": "Draft subject"},
                    ],
                    "body": {"data": b64("Draft body")},
                }
            },
        })
        assert draft == EmailDraft(id="d1", to="x@example.com", subject="Draft subject", body="Draft body")

    def test_missing_message(self) -> None:
        assert EmailDraft.from_api({"id": "d2"}) == EmailDraft(id="d2", to="", subject="")


class TestDraftResult:
    def test_web_link_uses_message_id(self) -> None:
        result = DraftResult.from_api({"id": "draft1", "message": {"id": "m1"}})
        assert result.id == "draft1"
        assert result.web_link == "https://mail.google.com/mail/u/0/#drafts?compose=m1"

    def test_missing_fields(self) -> None:
        result = DraftResult.from_api({})
        assert result.id == ""
        assert result.message_id == ""


class TestGmailLabel:
    def test_counts_taken_from_detail(self) -> None:
        label = GmailLabel.from_api(
            {"id": "INBOX", "name": "INBOX", "type": "system"},
            {"messagesTotal": 100, "messagesUnread": 5},
        )
        assert label.is_system
        assert label.messages_total == 100
        assert label.messages_unread == 5

    def test_unknown_type_is_user(self) -> None:
        label = GmailLabel.from_api({"id": "Label_1", "name": "Work"})
        assert label.type == "user"
        assert label.messages_total is None
        assert label.messages_unread is None


class TestFilters:
    def test_from_api_defaults(self) -> None:
        f = GmailFilter.from_api({"id": "f1"})
        assert f.id == "f1"
        assert f.criteria == FilterCriteria()
        assert f.action == FilterAction()

    def test_round_trip_fields(self) -> None:
        f = GmailFilter.from_api({
            "id": "f2",
            "criteria": {"from": "news@example.com", "subject": "Weekly"},
            "action": {"addLabelIds": ["Label_1"], "removeLabelIds": ["INBOX"]},
        })
        assert f.criteria.from_ == "news@example.com"
        assert f.criteria.to_api() == {"from": "news@example.com", "subject": "Weekly"}
        assert f.action.to_api() == {"addLabelIds": ["Label_1"], "removeLabelIds": ["INBOX"]}

    def test_to_api_drops_unset(self) -> None:
        assert FilterCriteria(query="is:unread").to_api() == {"query": "is:unread"}
        assert FilterAction().to_api() == {}

    def test_criteria_is_empty(self) -> None:
        assert FilterCriteria().is_empty()
        assert FilterCriteria(subject="", query=None).is_empty()
        assert not FilterCriteria(to="me@example.com").is_empty()

    def test_action_items_join_lists(self) -> None:
        action = FilterAction(add_label_ids=["A", "B"], forward="fw@example.com")
        assert action.items() == [("addLabelIds", "A, B"), ("forward", "fw@example.com")]


class TestProfile:
    def test_from_api(self) -> None:
        p = Profile.from_api({"emailAddress": "me@example.com", "messagesTotal": 1234})
        assert p == Profile(email="me@example.com", messages_total=1234)

    def test_missing_fields(self) -> None:
        assert Profile.from_api({}) == Profile(email="", messages_total=0)
