"""Expose commonly used ORM models at package level.

These re-exports are intentional so callers can import from
``models`` (e.g. `from models import Project`).
"""

from .creators import CreatorPreferences, CreatorProfile, CreatorRating  # noqa: F401
from .notifications import Notification  # noqa: F401
from .payments import Payment  # noqa: F401
from .profiles import CoverageArea, Profile, UserProfile  # noqa: F401
from .projects import (  # noqa: F401
    Project,
    ProjectActivity,
    ProjectAssignment,
    ProjectRouting,
    VendorResponse,
)
