"""
Medic Rating Commands
"""

import argparse

from .common import get_utc_timestamp, open_context, to_plain


def cmd_rate(args: argparse.Namespace) -> dict:
    """Rate a target 1-5, replacing this rater's earlier rating."""
    ctx = open_context()
    try:
        saved = ctx.ratings.rate(args.target_id, args.rating, comment=args.comment, rater=args.rater)
        stats = ctx.ratings.get_rating_stats(args.target_id) if saved else None
    finally:
        ctx.close()

    if not saved:
        return {
            "error": "rating_rejected",
            "message": "Rating must be an integer from 1 to 5",
            "query_timestamp": get_utc_timestamp(),
        }
    return {
        "query_timestamp": get_utc_timestamp(),
        "target_id": args.target_id,
        "stats": to_plain(stats),
    }


def cmd_ratings(args: argparse.Namespace) -> dict:
    """Ratings and aggregates for a target, or every rating."""
    ctx = open_context()
    try:
        if args.target_id:
            ratings = ctx.ratings.get_ratings_for_target(args.target_id)
            stats = ctx.ratings.get_rating_stats(args.target_id)
        else:
            ratings = ctx.ratings.get_all_ratings()
            stats = None
    finally:
        ctx.close()

    response = {
        "query_timestamp": get_utc_timestamp(),
        "count": len(ratings),
        "ratings": to_plain(ratings),
    }
    if args.target_id:
        response["target_id"] = args.target_id
        response["stats"] = to_plain(stats)
    return response


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register rating command parsers."""

    rate_parser = subparsers.add_parser("rate", help="Rate a target from 1 to 5")
    rate_parser.add_argument("target_id", help="ID of the rated item")
    rate_parser.add_argument("rating", type=int, help="Score 1-5")
    rate_parser.add_argument("--comment", default="", help="Optional comment")
    rate_parser.add_argument("--rater", default="anonymous", help="Rater name (default: anonymous)")
    rate_parser.set_defaults(func=cmd_rate)

    ratings_parser = subparsers.add_parser("ratings", help="Show ratings")
    ratings_parser.add_argument("target_id", nargs="?", help="Limit to one target")
    ratings_parser.set_defaults(func=cmd_ratings)
