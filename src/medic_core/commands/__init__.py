"""
Medic CLI Commands

Each module handles a logical group of related commands and exposes
``register_parsers(subparsers)``.
"""

from . import records, ratings, system, tickets

__all__ = [
    "records",
    "tickets",
    "ratings",
    "system",
]
