"""
Tests for the Ticket Service.

Tests cover:
- Ticket creation, id format and uniqueness
- Reply threading and sender-driven status changes
- Explicit status updates and deletion
- Aggregate statistics
"""

from __future__ import annotations

import json

import pytest

from medic_core.core.formatters import to_base36
from medic_core.services import TicketService
from medic_core.services.tickets import make_ticket_id
from medic_core.storage import TICKETS_KEY, MemoryBackend


def _create(tickets: TicketService, **overrides) -> str:
    data = {"title": "Cannot log in", "description": "Launcher fails", "createdBy": "pilot_one"}
    data.update(overrides)
    result = tickets.create_ticket(data)
    assert result.success, result.message
    return result.ticket_id


class TestTicketId:
    def test_format(self):
        assert make_ticket_id(1_700_000_000.0) == "TICKET-" + to_base36(1_700_000_000_000).upper()

    def test_upper_case(self):
        assert make_ticket_id(1_700_000_000.0).upper() == make_ticket_id(1_700_000_000.0)


class TestCreateTicket:
    """Tests for create_ticket."""

    def test_creates_open_ticket_with_seed_message(self, tickets, clock):
        ticket_id = _create(tickets)
        ticket = tickets.get_ticket(ticket_id)

        assert ticket_id == make_ticket_id(clock.now)
        assert ticket.status == "open"
        assert ticket.category == "general"
        assert ticket.priority == "medium"
        assert ticket.created_at == ticket.updated_at == "2023-11-14T22:13:20.000Z"
        assert len(ticket.messages) == 1
        assert ticket.messages[0].id == "msg-1"
        assert ticket.messages[0].text == "Launcher fails"
        assert ticket.messages[0].sender == "pilot_one"

    def test_anonymous_creator(self, tickets):
        ticket = tickets.get_ticket(_create(tickets, createdBy=None))

        assert ticket.created_by == "Anonymous"

    def test_persisted_raw_camel_case(self, tickets, backend):
        _create(tickets)

        stored = json.loads(backend.get_item(TICKETS_KEY))
        assert stored[0]["createdBy"] == "pilot_one"
        assert "value" not in stored[0]

    @pytest.mark.parametrize("missing", ["title", "description"])
    def test_required_fields(self, tickets, backend, missing):
        data = {"title": "t", "description": "d", missing: "  "}

        result = tickets.create_ticket(data)

        assert result.success is False
        assert result.code == "VALIDATION_ERROR"
        assert backend.get_item(TICKETS_KEY) is None

    def test_unknown_category(self, tickets):
        result = tickets.create_ticket({"title": "t", "description": "d", "category": "billing"})

        assert result.code == "VALIDATION_ERROR"
        assert "category" in result.message

    def test_unknown_priority(self, tickets):
        result = tickets.create_ticket({"title": "t", "description": "d", "priority": "critical"})

        assert result.code == "VALIDATION_ERROR"

    def test_ids_unique_at_same_instant(self, tickets):
        ids = {_create(tickets, title=f"ticket {i}") for i in range(1000)}

        assert len(ids) == 1000
        assert len(tickets.get_all_tickets()) == 1000

    def test_logs_activity(self, tickets, api):
        ticket_id = _create(tickets)

        entry = api.get_activity_logs()[0]
        assert entry.action == "ticket_created"
        assert entry.data == {"ticketId": ticket_id}

    def test_storage_failure(self, clock):
        service = TicketService(MemoryBackend(quota_bytes=50), clock=clock)

        result = service.create_ticket({"title": "t", "description": "d" * 100})

        assert result.success is False
        assert result.code == "STORAGE_QUOTA_EXCEEDED"


class TestReply:
    """Tests for reply_to_ticket."""

    def test_admin_reply_answers(self, tickets, clock):
        ticket_id = _create(tickets)
        clock.advance(60)

        result = tickets.reply_to_ticket(ticket_id, "Try reinstalling")

        assert result.success is True
        ticket = tickets.get_ticket(ticket_id)
        assert ticket.status == "answered"
        assert ticket.updated_at == "2023-11-14T22:14:20.000Z"
        assert [m.id for m in ticket.messages] == ["msg-1", "msg-2"]
        assert ticket.messages[1].sender == "System Admin"

    def test_user_reply_moves_to_review(self, tickets):
        ticket_id = _create(tickets)
        tickets.reply_to_ticket(ticket_id, "Try reinstalling")

        tickets.reply_to_ticket(ticket_id, "Still broken", sender="pilot_one")

        ticket = tickets.get_ticket(ticket_id)
        assert ticket.status == "in-review"
        assert [m.text for m in ticket.messages] == ["Launcher fails", "Try reinstalling", "Still broken"]
        assert ticket.messages[2].id == "msg-3"

    def test_unknown_ticket(self, tickets):
        result = tickets.reply_to_ticket("TICKET-NOPE", "hello")

        assert result.success is False
        assert result.code == "NOT_FOUND"

    def test_empty_reply(self, tickets):
        ticket_id = _create(tickets)

        result = tickets.reply_to_ticket(ticket_id, "   ")

        assert result.code == "VALIDATION_ERROR"
        assert len(tickets.get_ticket(ticket_id).messages) == 1

    def test_custom_admin_sender(self, backend, clock):
        service = TicketService(backend, clock=clock, admin_sender="Medic Lead")
        ticket_id = _create(service)

        service.reply_to_ticket(ticket_id, "On it")

        assert service.get_ticket(ticket_id).messages[1].sender == "Medic Lead"
        assert service.get_ticket(ticket_id).status == "answered"


class TestStatusAndDelete:
    """Tests for update_ticket_status and delete_ticket."""

    @pytest.mark.parametrize("status", ["open", "in-review", "answered", "closed"])
    def test_any_valid_status(self, tickets, status):
        ticket_id = _create(tickets)

        result = tickets.update_ticket_status(ticket_id, status)

        assert result.success is True
        assert tickets.get_ticket(ticket_id).status == status

    def test_invalid_status_leaves_ticket_unchanged(self, tickets, backend):
        ticket_id = _create(tickets)
        before = backend.get_item(TICKETS_KEY)

        result = tickets.update_ticket_status(ticket_id, "resolved")

        assert result.success is False
        assert result.code == "INVALID_STATUS"
        assert backend.get_item(TICKETS_KEY) == before

    def test_status_unknown_ticket(self, tickets):
        assert tickets.update_ticket_status("TICKET-NOPE", "closed").code == "NOT_FOUND"

    def test_delete(self, tickets):
        keep = _create(tickets, title="keep")
        drop = _create(tickets, title="drop")

        result = tickets.delete_ticket(drop)

        assert result.success is True
        assert [t.id for t in tickets.get_all_tickets()] == [keep]
        assert tickets.get_ticket(drop) is None

    def test_delete_unknown(self, tickets):
        assert tickets.delete_ticket("TICKET-NOPE").code == "NOT_FOUND"


class TestTicketStats:
    """Tests for get_ticket_stats."""

    def test_empty_has_all_buckets(self, tickets):
        stats = tickets.get_ticket_stats()

        assert stats["total"] == 0
        assert stats["by_status"] == {"open": 0, "in-review": 0, "answered": 0, "closed": 0}
        assert stats["by_category"] == {"general": 0, "technical": 0, "membership": 0, "gallery": 0, "other": 0}
        assert stats["by_priority"] == {"low": 0, "medium": 0, "high": 0, "urgent": 0}
        assert stats["open"] == 0
        assert stats["closed"] == 0
        assert stats["avg_response_time"] == 0

    def test_counts(self, tickets, clock):
        first = _create(tickets, category="technical", priority="high")
        second = _create(tickets, category="gallery")
        third = _create(tickets)
        _create(tickets, priority="urgent")

        clock.advance(120)
        tickets.reply_to_ticket(first, "Answer")
        tickets.reply_to_ticket(second, "Answer")
        tickets.reply_to_ticket(second, "More detail", sender="pilot_one")
        tickets.update_ticket_status(third, "closed")

        stats = tickets.get_ticket_stats()

        assert stats["total"] == 4
        assert stats["by_status"] == {"open": 1, "in-review": 1, "answered": 1, "closed": 1}
        assert stats["by_category"]["technical"] == 1
        assert stats["by_category"]["gallery"] == 1
        assert stats["by_category"]["general"] == 2
        assert stats["by_priority"] == {"low": 0, "medium": 2, "high": 1, "urgent": 1}
        # open counts open and in-review
        assert stats["open"] == 2
        assert stats["closed"] == 1

    def test_average_response_time(self, tickets, clock):
        fast = _create(tickets)
        slow = _create(tickets)

        clock.advance(60)
        tickets.reply_to_ticket(fast, "Answer")
        clock.advance(120)
        tickets.reply_to_ticket(slow, "Answer")

        # created 1 ms apart; replies at +60 s and +180 s
        assert tickets.get_ticket_stats()["avg_response_time"] == pytest.approx(120.0, abs=0.1)


LEGACY_TICKET = {
    "id": "TICKET-LEGACY",
    "title": "Old ticket",
    "description": "Imported from the previous site",
    "category": "عمومی",
    "priority": "medium",
    "status": "open",
    "createdBy": "pilot_zero",
    "createdAt": "2023-01-01T00:00:00.000Z",
    "updatedAt": "2023-01-01T00:00:00.000Z",
    "messages": [],
}


class TestUndecodableTicketsKept:
    """Stored tickets the model rejects stay in the array across writes."""

    @pytest.fixture
    def legacy(self, backend):
        backend.set_item(TICKETS_KEY, json.dumps([LEGACY_TICKET], ensure_ascii=False))
        return LEGACY_TICKET

    def _stored(self, backend) -> list:
        return json.loads(backend.get_item(TICKETS_KEY))

    def test_hidden_from_reads(self, tickets, legacy):
        assert tickets.get_all_tickets() == []
        assert tickets.get_ticket(legacy["id"]) is None

    def test_survives_create(self, tickets, backend, legacy):
        ticket_id = _create(tickets)

        stored = self._stored(backend)
        assert stored[0] == legacy
        assert stored[1]["id"] == ticket_id

    def test_survives_reply_status_and_delete_of_others(self, tickets, backend, legacy):
        keep = _create(tickets, title="keep")
        drop = _create(tickets, title="drop")

        assert tickets.reply_to_ticket(keep, "On it").success is True
        assert tickets.update_ticket_status(keep, "closed").success is True
        assert tickets.delete_ticket(drop).success is True

        stored = self._stored(backend)
        assert stored[0] == legacy
        assert [t["id"] for t in stored] == [legacy["id"], keep]
        assert stored[1]["status"] == "closed"
        assert len(stored[1]["messages"]) == 2

    def test_cannot_be_addressed_by_id(self, tickets, backend, legacy):
        assert tickets.delete_ticket(legacy["id"]).code == "NOT_FOUND"
        assert tickets.reply_to_ticket(legacy["id"], "hello").code == "NOT_FOUND"
        assert self._stored(backend) == [legacy]

    def test_new_id_skips_stored_ids(self, tickets, backend, clock):
        backend.set_item(TICKETS_KEY, json.dumps([{"id": make_ticket_id(clock.now)}]))

        ticket_id = _create(tickets)

        assert ticket_id == make_ticket_id(clock.now + 0.001)
