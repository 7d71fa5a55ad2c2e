"""
Ticket Service.

Support tickets stored as one raw JSON array under ``medic_tickets``. Each
ticket owns an ordered message thread seeded with its description.

Status handling:
- create -> open
- reply by the admin sender -> answered; reply by anyone else -> in-review
- update_ticket_status may assign any of the four statuses directly
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Optional

from ..core.formatters import Clock, epoch_millis, format_timestamp, parse_timestamp, system_clock, to_base36
from ..core.logging import get_logger
from ..errors import InvalidStatusError, MedicError, NotFoundError, ValidationError
from ..models import (
    TICKET_CATEGORIES,
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    OperationResult,
    Ticket,
    TicketMessage,
)
from ..storage.collections import TICKETS_KEY, RecordCollection, field_values
from ..storage.protocol import KeyValueBackend

logger = get_logger(__name__)

ADMIN_SENDER = "System Admin"
ANONYMOUS_SENDER = "Anonymous"

ActivityLogger = Callable[[str, Any], object]


def make_ticket_id(now: float) -> str:
    """TICKET- followed by the upper-case base-36 epoch milliseconds."""
    return "TICKET-" + to_base36(epoch_millis(now)).upper()


class TicketService:
    """Create, reply to, re-status, delete and summarize support tickets."""

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Clock = system_clock,
        activity_logger: Optional[ActivityLogger] = None,
        admin_sender: str = ADMIN_SENDER,
        anonymous_sender: str = ANONYMOUS_SENDER,
    ):
        self.collection: RecordCollection[Ticket] = RecordCollection(backend, TICKETS_KEY, Ticket)
        self.clock = clock
        self.activity_logger = activity_logger
        self.admin_sender = admin_sender
        self.anonymous_sender = anonymous_sender

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all_tickets(self) -> list[Ticket]:
        return self.collection.load()

    def get_ticket(self, ticket_id: str) -> Ticket | None:
        for ticket in self.collection.load():
            if ticket.id == ticket_id:
                return ticket
        return None

    # =========================================================================
    # Writes
    # =========================================================================

    def create_ticket(self, data: Mapping[str, Any]) -> OperationResult:
        """
        Create a ticket with a single seed message.

        Args:
            data: title and description (required), category, priority,
                created_by/createdBy (optional)

        Returns:
            OperationResult with ticket_id and the ticket, or a failed result
        """
        try:
            payload = Ticket.normalize_keys(dict(data))
            title = _text(payload.get("title"))
            description = _text(payload.get("description"))
            missing = [name for name, value in (("title", title), ("description", description)) if not value]
            if missing:
                raise ValidationError("Ticket title and description are required", fields=missing)

            category = payload.get("category") or TICKET_CATEGORIES[0]
            if category not in TICKET_CATEGORIES:
                raise ValidationError(f"Unknown ticket category: {category}", fields=["category"])
            priority = payload.get("priority") or TICKET_PRIORITIES[1]
            if priority not in TICKET_PRIORITIES:
                raise ValidationError(f"Unknown ticket priority: {priority}", fields=["priority"])

            items = self.collection.load_raw()
            existing = field_values(items, "id")
            now = self.clock()
            while make_ticket_id(now) in existing:
                now += 0.001

            created_by = _text(payload.get("createdBy")) or self.anonymous_sender
            stamp = format_timestamp(now)
            ticket = Ticket(
                id=make_ticket_id(now),
                title=title,
                description=description,
                category=category,
                priority=priority,
                status="open",
                created_by=created_by,
                created_at=stamp,
                updated_at=stamp,
                messages=[TicketMessage(id="msg-1", text=description, sender=created_by, timestamp=stamp)],
            )

            items.append(ticket)
            self.collection.save(items)
        except MedicError as e:
            logger.warning("Ticket not created: %s", e)
            return OperationResult.from_error(e)

        if self.activity_logger is not None:
            self.activity_logger("ticket_created", {"ticketId": ticket.id})
        logger.info("Ticket %s created", ticket.id)
        return OperationResult.ok("Ticket created successfully", ticket_id=ticket.id, data=ticket)

    def reply_to_ticket(self, ticket_id: str, message: str, sender: Optional[str] = None) -> OperationResult:
        """
        Append a message to a ticket's thread.

        A reply from the admin sender marks the ticket answered; any other
        sender puts it back in review.
        """
        sender = sender or self.admin_sender
        try:
            if not _text(message):
                raise ValidationError("Reply text is required", fields=["message"])

            items = self.collection.load_raw()
            index, ticket = self._locate(items, ticket_id)

            stamp = format_timestamp(self.clock())
            ticket.messages.append(
                TicketMessage(
                    id=f"msg-{len(ticket.messages) + 1}",
                    text=message,
                    sender=sender,
                    timestamp=stamp,
                )
            )
            ticket.updated_at = stamp
            ticket.status = "answered" if sender == self.admin_sender else "in-review"

            items[index] = ticket
            self.collection.save(items)
        except MedicError as e:
            logger.warning("Reply to %s failed: %s", ticket_id, e)
            return OperationResult.from_error(e)

        return OperationResult.ok("Reply sent", ticket_id=ticket_id, data=ticket)

    def update_ticket_status(self, ticket_id: str, new_status: str) -> OperationResult:
        """Assign one of the fixed statuses directly."""
        try:
            if new_status not in TICKET_STATUSES:
                raise InvalidStatusError(new_status, TICKET_STATUSES)

            items = self.collection.load_raw()
            index, ticket = self._locate(items, ticket_id)
            ticket.status = new_status
            ticket.updated_at = format_timestamp(self.clock())

            items[index] = ticket
            self.collection.save(items)
        except MedicError as e:
            logger.warning("Status update for %s failed: %s", ticket_id, e)
            return OperationResult.from_error(e)

        return OperationResult.ok("Ticket status updated", ticket_id=ticket_id, data=ticket)

    def delete_ticket(self, ticket_id: str) -> OperationResult:
        """Remove a ticket permanently."""
        try:
            items = self.collection.load_raw()
            index, _ = self._locate(items, ticket_id)
            del items[index]
            self.collection.save(items)
        except MedicError as e:
            logger.warning("Delete of %s failed: %s", ticket_id, e)
            return OperationResult.from_error(e)

        logger.info("Ticket %s deleted", ticket_id)
        return OperationResult.ok("Ticket deleted", ticket_id=ticket_id)

    # =========================================================================
    # Aggregates
    # =========================================================================

    def get_ticket_stats(self) -> dict[str, Any]:
        """
        Counts by status, category and priority.

        Every bucket of the fixed sets is present, zero when unused. ``open``
        counts open and in-review tickets; ``avg_response_time`` is the mean
        number of seconds between creation and the first admin reply.
        """
        tickets = self.collection.load()

        stats: dict[str, Any] = {
            "total": len(tickets),
            "by_status": dict.fromkeys(TICKET_STATUSES, 0),
            "by_category": dict.fromkeys(TICKET_CATEGORIES, 0),
            "by_priority": dict.fromkeys(TICKET_PRIORITIES, 0),
            "open": 0,
            "closed": 0,
            "avg_response_time": 0,
        }

        response_times: list[float] = []
        for ticket in tickets:
            stats["by_status"][ticket.status] += 1
            stats["by_category"][ticket.category] += 1
            stats["by_priority"][ticket.priority] += 1

            if ticket.status in ("open", "in-review"):
                stats["open"] += 1
            elif ticket.status == "closed":
                stats["closed"] += 1

            response = self._first_response_seconds(ticket)
            if response is not None:
                response_times.append(response)

        if response_times:
            stats["avg_response_time"] = round(sum(response_times) / len(response_times), 1)

        return stats

    def _locate(self, items: list[Any], ticket_id: str) -> tuple[int, Ticket]:
        """Find a decodable ticket in the raw array by id."""
        for index, ticket in self.collection.decode_indexed(items):
            if ticket.id == ticket_id:
                return index, ticket
        raise NotFoundError("ticket", ticket_id)

    def _first_response_seconds(self, ticket: Ticket) -> float | None:
        created = parse_timestamp(ticket.created_at)
        if created is None:
            return None
        for message in ticket.messages[1:]:
            if message.sender == self.admin_sender:
                replied = parse_timestamp(message.timestamp)
                if replied is None:
                    return None
                return (replied - created).total_seconds()
        return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
