"""Predicates deciding whether two reports corroborate each other.

Two reports corroborate when both hold:
- Adjacency: both are geotagged and no further apart than the threshold
  (inclusive)
- Same issue: equal category tags when both reports carry one (exact,
  case-sensitive), otherwise equal problem text after trimming and
  lower-casing
"""

from credibility_system.config.corroboration import DEFAULT_ADJACENCY_THRESHOLD_METERS
from credibility_system.data_management.schemas import Report
from credibility_system.scoring.geo import distance_meters


def are_adjacent(
    a: Report,
    b: Report,
    threshold_meters: float = DEFAULT_ADJACENCY_THRESHOLD_METERS,
) -> bool:
    """True when both reports have coordinates and lie within threshold_meters."""
    distance = distance_meters(a, b)
    if distance is None:
        return False
    return distance <= threshold_meters


def has_same_issue(a: Report, b: Report) -> bool:
    """True when both reports describe the same issue."""
    if a.type and b.type:
        return a.type == b.type
    return a.problem.strip().lower() == b.problem.strip().lower()


def is_corroborating(
    a: Report,
    b: Report,
    threshold_meters: float = DEFAULT_ADJACENCY_THRESHOLD_METERS,
) -> bool:
    """True when b is adjacent to a and reports the same issue."""
    return are_adjacent(a, b, threshold_meters) and has_same_issue(a, b)
