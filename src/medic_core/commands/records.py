"""
Medic Record Commands

Membership applications, gallery uploads, search and the activity log.
"""

import argparse
import asyncio

from .common import get_utc_timestamp, open_context, result_response, to_plain

# =============================================================================
# Applications & Uploads
# =============================================================================


def cmd_applications(args: argparse.Namespace) -> dict:
    """List applications, optionally filtered by status."""
    ctx = open_context()
    try:
        if args.status:
            records = asyncio.run(ctx.api.filter({"status": args.status}, type="applications"))
        else:
            records = asyncio.run(ctx.api.get_applications(force_refresh=args.refresh))
    finally:
        ctx.close()

    return {
        "query_timestamp": get_utc_timestamp(),
        "count": len(records),
        "applications": to_plain(records),
    }


def cmd_apply(args: argparse.Namespace) -> dict:
    """Submit a membership application."""
    data = {
        "gameUsername": args.username,
        "discordId": args.discord,
        "experience": args.experience,
        "playTime": args.play_time,
        "whyJoin": args.why,
    }
    ctx = open_context()
    try:
        result = asyncio.run(ctx.api.submit_application({k: v for k, v in data.items() if v is not None}))
    finally:
        ctx.close()
    return result_response(result)


def cmd_uploads(args: argparse.Namespace) -> dict:
    """List gallery upload requests."""
    ctx = open_context()
    try:
        if args.status:
            records = asyncio.run(ctx.api.filter({"status": args.status}, type="uploads"))
        else:
            records = asyncio.run(ctx.api.get_uploads())
    finally:
        ctx.close()

    return {
        "query_timestamp": get_utc_timestamp(),
        "count": len(records),
        "uploads": to_plain(records),
    }


def cmd_upload(args: argparse.Namespace) -> dict:
    """Submit a gallery upload request."""
    data = {"name": args.name, "description": args.description}
    if args.category:
        data["category"] = args.category

    ctx = open_context()
    try:
        result = asyncio.run(ctx.api.submit_upload(data))
    finally:
        ctx.close()
    return result_response(result)


# =============================================================================
# Queries
# =============================================================================


def cmd_search(args: argparse.Namespace) -> dict:
    """Substring search over applications and uploads."""
    ctx = open_context()
    try:
        hits = asyncio.run(ctx.api.search(args.query, type=args.type))
    finally:
        ctx.close()

    return {
        "query_timestamp": get_utc_timestamp(),
        "query": args.query,
        "scope": args.type,
        "count": len(hits),
        "results": to_plain(hits),
    }


def cmd_logs(args: argparse.Namespace) -> dict:
    """Newest activity log entries."""
    ctx = open_context()
    try:
        entries = ctx.api.get_activity_logs(limit=args.limit)
    finally:
        ctx.close()

    return {
        "query_timestamp": get_utc_timestamp(),
        "count": len(entries),
        "logs": to_plain(entries),
    }


def cmd_stats(args: argparse.Namespace) -> dict:
    """Per-status counts and a storage summary."""
    ctx = open_context()
    try:
        stats = asyncio.run(ctx.api.get_stats())
    finally:
        ctx.close()

    return {"query_timestamp": get_utc_timestamp(), **stats}


# =============================================================================
# Parser Registration
# =============================================================================


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register record command parsers."""

    apps_parser = subparsers.add_parser("applications", help="List membership applications")
    apps_parser.add_argument(
        "--status", choices=["pending", "approved", "rejected"], help="Only this status"
    )
    apps_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")
    apps_parser.set_defaults(func=cmd_applications)

    apply_parser = subparsers.add_parser("apply", help="Submit a membership application")
    apply_parser.add_argument("username", help="In-game username")
    apply_parser.add_argument("--discord", help="Discord ID")
    apply_parser.add_argument("--experience", help="Experience level")
    apply_parser.add_argument("--play-time", dest="play_time", help="Typical play time")
    apply_parser.add_argument("--why", help="Reason for joining")
    apply_parser.set_defaults(func=cmd_apply)

    uploads_parser = subparsers.add_parser("uploads", help="List gallery upload requests")
    uploads_parser.add_argument(
        "--status", choices=["pending", "approved", "rejected"], help="Only this status"
    )
    uploads_parser.set_defaults(func=cmd_uploads)

    upload_parser = subparsers.add_parser("upload", help="Submit a gallery upload request")
    upload_parser.add_argument("name", help="Media title")
    upload_parser.add_argument("description", help="Media description")
    upload_parser.add_argument("--category", help="Gallery category (default: operations)")
    upload_parser.set_defaults(func=cmd_upload)

    search_parser = subparsers.add_parser("search", help="Search applications and uploads")
    search_parser.add_argument("query", help="Case-insensitive search text")
    search_parser.add_argument(
        "--type", choices=["all", "applications", "uploads"], default="all", help="Search scope"
    )
    search_parser.set_defaults(func=cmd_search)

    logs_parser = subparsers.add_parser("logs", help="Recent activity log entries")
    logs_parser.add_argument("--limit", type=int, default=50, help="Maximum entries (default: 50)")
    logs_parser.set_defaults(func=cmd_logs)

    stats_parser = subparsers.add_parser("stats", help="Application and upload statistics")
    stats_parser.set_defaults(func=cmd_stats)
