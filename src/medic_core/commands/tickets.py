"""
Medic Ticket Commands

Support ticket lifecycle from the command line.
"""

import argparse

from ..models import TICKET_CATEGORIES, TICKET_PRIORITIES, TICKET_STATUSES
from .common import get_utc_timestamp, open_context, result_response, to_plain


def cmd_tickets_list(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        tickets = ctx.tickets.get_all_tickets()
    finally:
        ctx.close()

    if args.status:
        tickets = [t for t in tickets if t.status == args.status]
    return {
        "query_timestamp": get_utc_timestamp(),
        "count": len(tickets),
        "tickets": to_plain(tickets),
    }


def cmd_tickets_show(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        ticket = ctx.tickets.get_ticket(args.ticket_id)
    finally:
        ctx.close()

    if ticket is None:
        return {
            "error": "not_found",
            "message": f"Ticket not found: {args.ticket_id}",
            "query_timestamp": get_utc_timestamp(),
        }
    return {"query_timestamp": get_utc_timestamp(), "ticket": ticket.to_dict()}


def cmd_tickets_create(args: argparse.Namespace) -> dict:
    data = {
        "title": args.title,
        "description": args.description,
        "category": args.category,
        "priority": args.priority,
    }
    if args.created_by:
        data["createdBy"] = args.created_by

    ctx = open_context()
    try:
        result = ctx.tickets.create_ticket(data)
    finally:
        ctx.close()
    return result_response(result)


def cmd_tickets_reply(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        result = ctx.tickets.reply_to_ticket(args.ticket_id, args.message, sender=args.sender)
    finally:
        ctx.close()
    return result_response(result)


def cmd_tickets_status(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        result = ctx.tickets.update_ticket_status(args.ticket_id, args.status)
    finally:
        ctx.close()
    return result_response(result)


def cmd_tickets_delete(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        result = ctx.tickets.delete_ticket(args.ticket_id)
    finally:
        ctx.close()
    return result_response(result)


def cmd_tickets_stats(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        stats = ctx.tickets.get_ticket_stats()
    finally:
        ctx.close()
    return {"query_timestamp": get_utc_timestamp(), **stats}


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register ticket command parsers."""

    tickets_parser = subparsers.add_parser("tickets", help="Support tickets")
    tickets_sub = tickets_parser.add_subparsers(dest="tickets_command", required=True)

    list_parser = tickets_sub.add_parser("list", help="List tickets")
    list_parser.add_argument("--status", choices=TICKET_STATUSES, help="Only this status")
    list_parser.set_defaults(func=cmd_tickets_list)

    show_parser = tickets_sub.add_parser("show", help="Show one ticket with its thread")
    show_parser.add_argument("ticket_id", help="Ticket ID (TICKET-...)")
    show_parser.set_defaults(func=cmd_tickets_show)

    create_parser = tickets_sub.add_parser("create", help="Open a new ticket")
    create_parser.add_argument("title", help="Short summary")
    create_parser.add_argument("description", help="Full description")
    create_parser.add_argument(
        "--category", choices=TICKET_CATEGORIES, default="general", help="Ticket category"
    )
    create_parser.add_argument(
        "--priority", choices=TICKET_PRIORITIES, default="medium", help="Ticket priority"
    )
    create_parser.add_argument("--created-by", dest="created_by", help="Submitter name")
    create_parser.set_defaults(func=cmd_tickets_create)

    reply_parser = tickets_sub.add_parser("reply", help="Reply to a ticket")
    reply_parser.add_argument("ticket_id", help="Ticket ID")
    reply_parser.add_argument("message", help="Reply text")
    reply_parser.add_argument("--sender", help="Sender name (default: the admin sender)")
    reply_parser.set_defaults(func=cmd_tickets_reply)

    status_parser = tickets_sub.add_parser("status", help="Set a ticket's status")
    status_parser.add_argument("ticket_id", help="Ticket ID")
    status_parser.add_argument("status", help="open, in-review, answered or closed")
    status_parser.set_defaults(func=cmd_tickets_status)

    delete_parser = tickets_sub.add_parser("delete", help="Delete a ticket")
    delete_parser.add_argument("ticket_id", help="Ticket ID")
    delete_parser.set_defaults(func=cmd_tickets_delete)

    stats_parser = tickets_sub.add_parser("stats", help="Ticket statistics")
    stats_parser.set_defaults(func=cmd_tickets_stats)
