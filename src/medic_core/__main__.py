#!/usr/bin/env python3
"""
Medic Core CLI Entry Point

Command-line access to the local data layer.
Run with: python -m medic_core <command> [args]
"""

import argparse
import json
import sys

from .commands.common import get_utc_timestamp


def output_json(data: dict, indent: int = 2) -> None:
    """Print JSON output to stdout."""
    print(json.dumps(data, indent=indent, ensure_ascii=False))


def output_error(message: str, exit_code: int = 1, **kwargs) -> None:
    """Print error JSON and exit."""
    error_data = {
        "error": kwargs.pop("error_type", "error"),
        "message": message,
        "query_timestamp": get_utc_timestamp(),
    }
    error_data.update(kwargs)
    output_json(error_data)
    sys.exit(exit_code)


# =============================================================================
# Built-in Commands
# =============================================================================


def cmd_help(args: argparse.Namespace) -> dict:
    """Show help message."""
    help_text = """
═══════════════════════════════════════════════════════════════════
Medic Core Data Layer
───────────────────────────────────────────────────────────────────

Record Commands:
  applications [--status S]  List membership applications
  apply <username> [opts]    Submit an application
                             --discord, --experience, --play-time, --why
  uploads [--status S]       List gallery upload requests
  upload <name> <desc>       Submit an upload request [--category]
  search <query> [--type]    Search (all, applications, uploads)
  logs [--limit N]           Recent activity log entries
  stats                      Per-status counts and storage summary

Ticket Commands:
  tickets list [--status]    List tickets
  tickets show <id>          Show a ticket and its thread
  tickets create <t> <d>     Open a ticket [--category, --priority]
  tickets reply <id> <msg>   Reply (admin by default, --sender)
  tickets status <id> <s>    Set status: open, in-review, answered, closed
  tickets delete <id>        Delete a ticket
  tickets stats              Ticket statistics

Rating Commands:
  rate <target> <1-5>        Rate a target [--comment, --rater]
  ratings [target]           Ratings and aggregates

System Commands:
  info                       Version, theme and storage summary
  cleanup                    Remove expired entries
  theme [dark|light]         Show or set the theme [--toggle]
  config get [path]          Read site configuration
  config set <path> <value>  Set and persist a configuration value

Environment:
  MEDIC_STORAGE_BACKEND      memory or sqlite (default: sqlite)
  MEDIC_STORAGE_PATH         SQLite database path
  MEDIC_LOG_LEVEL            DEBUG, INFO, WARNING, ERROR
  MEDIC_CONFIG_FILE          YAML site configuration overrides

═══════════════════════════════════════════════════════════════════
"""
    print(help_text)
    return {}


# =============================================================================
# Main Entry Point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="medic-core",
        description="Medic Core - local persistent data layer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    help_parser = subparsers.add_parser("help", help="Show help message")
    help_parser.set_defaults(func=cmd_help)

    from .commands import ratings, records, system, tickets

    records.register_parsers(subparsers)
    tickets.register_parsers(subparsers)
    ratings.register_parsers(subparsers)
    system.register_parsers(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Default to help if no command
    if not args.command:
        cmd_help(args)
        return 0

    if not hasattr(args, "func"):
        output_error(
            f"Unknown command: {args.command}",
            error_type="unknown_command",
            hint="Run 'medic-core help' for usage",
        )

    try:
        result = args.func(args)

        if isinstance(result, dict) and result:
            output_json(result)

            if "error" in result:
                return 1

        return 0

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        output_error(str(e), error_type="command_error", command=args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
