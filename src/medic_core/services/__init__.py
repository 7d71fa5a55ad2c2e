"""
Medic domain services.

Each service is the only writer of its collection:
- DataAccessService: applications, uploads, activity log
- TicketService: support tickets
- RatingService: ratings
- ThemePreferences: theme preference
"""

from .data_access import DataAccessService
from .ratings import RatingService
from .theme import ThemePreferences
from .tickets import TicketService

__all__ = [
    "DataAccessService",
    "RatingService",
    "ThemePreferences",
    "TicketService",
]
