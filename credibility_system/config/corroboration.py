"""Corroboration constants for community report scoring.

Two reports corroborate each other when they describe the same issue and
were filed within the adjacency radius of one another. Every distinct user
involved in a corroborated report earns one credibility point.

The first release used a 100 m radius; 500 m is the current canonical one.

The radius is configurable (ADJACENCY_THRESHOLD_METERS env var); these are
the defaults the settings layer and the scorer fall back to.
"""

from typing import Tuple

# Mean Earth radius used by the haversine formula
EARTH_RADIUS_KM: float = 6371.0

# Adjacency radius in metres (inclusive)
DEFAULT_ADJACENCY_THRESHOLD_METERS: float = 500.0

# At least this many distinct users must be involved before anyone is rewarded
MIN_DISTINCT_USERS: int = 2

# Points awarded per user per corroborated report
CREDIBILITY_INCREMENT: int = 1

# Report categories offered by the client. Unknown tags are still stored and
# compared verbatim.
REPORT_TYPES: Tuple[str, ...] = ("traffic", "pollution", "flood", "other")
