"""
Medic System Commands

Context info, expired-entry cleanup, theme and site configuration.
"""

import argparse

from ..context import create_context
from ..services.theme import THEMES
from .common import get_utc_timestamp, open_context, parse_value


def cmd_info(args: argparse.Namespace) -> dict:
    """Version, theme and storage summary."""
    ctx = open_context()
    try:
        info = ctx.get_system_info()
        info["storage_backend"] = ctx.settings.storage_backend
        if ctx.settings.storage_backend == "sqlite":
            info["db_path"] = str(ctx.settings.db_path)
    finally:
        ctx.close()
    return {"query_timestamp": get_utc_timestamp(), **info}


def cmd_cleanup(args: argparse.Namespace) -> dict:
    """Remove expired entries."""
    ctx = create_context()
    try:
        removed = ctx.init()
        stats = ctx.storage.get_stats()
    finally:
        ctx.close()
    return {"query_timestamp": get_utc_timestamp(), "removed": removed, "storage": stats}


def cmd_theme(args: argparse.Namespace) -> dict:
    """Show, set or toggle the theme preference."""
    ctx = open_context()
    try:
        if args.toggle:
            ctx.theme.toggle_theme()
        elif args.theme:
            ctx.theme.apply_theme(args.theme)
        info = ctx.theme.get_theme_info()
    finally:
        ctx.close()
    return {"query_timestamp": get_utc_timestamp(), **info}


def cmd_config_get(args: argparse.Namespace) -> dict:
    ctx = open_context()
    try:
        if args.path:
            value = ctx.config.get(args.path)
        else:
            value = ctx.config.get_all()
    finally:
        ctx.close()

    if args.path and value is None:
        return {
            "error": "not_found",
            "message": f"No configuration value at {args.path}",
            "query_timestamp": get_utc_timestamp(),
        }
    return {"query_timestamp": get_utc_timestamp(), "path": args.path, "value": value}


def cmd_config_set(args: argparse.Namespace) -> dict:
    value = parse_value(args.value)
    ctx = open_context()
    try:
        ctx.config.set(args.path, value)
        saved = ctx.config.save_to_storage()
    finally:
        ctx.close()

    if not saved:
        return {
            "error": "storage_failure",
            "message": "Configuration could not be saved",
            "query_timestamp": get_utc_timestamp(),
        }
    return {"query_timestamp": get_utc_timestamp(), "path": args.path, "value": value}


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register system command parsers."""

    info_parser = subparsers.add_parser("info", help="System information")
    info_parser.set_defaults(func=cmd_info)

    cleanup_parser = subparsers.add_parser("cleanup", help="Remove expired entries")
    cleanup_parser.set_defaults(func=cmd_cleanup)

    theme_parser = subparsers.add_parser("theme", help="Show or change the theme preference")
    theme_parser.add_argument("theme", nargs="?", choices=THEMES, help="Theme to apply")
    theme_parser.add_argument("--toggle", action="store_true", help="Switch dark/light")
    theme_parser.set_defaults(func=cmd_theme)

    config_parser = subparsers.add_parser("config", help="Site configuration")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)

    get_parser = config_sub.add_parser("get", help="Read a value by dot path")
    get_parser.add_argument("path", nargs="?", help="Dot path, e.g. cache.ttl (omit for all)")
    get_parser.set_defaults(func=cmd_config_get)

    set_parser = config_sub.add_parser("set", help="Set and persist a value by dot path")
    set_parser.add_argument("path", help="Dot path, e.g. cache.ttl")
    set_parser.add_argument("value", help="JSON value (plain text is stored as a string)")
    set_parser.set_defaults(func=cmd_config_set)
