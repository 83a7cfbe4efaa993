"""Corroboration scoring for community reports.

This package provides the building blocks of the credibility award:
- haversine_km / distance_meters: great-circle distance between reports
- are_adjacent / has_same_issue / is_corroborating: matching predicates
- CorroborationScorer: finds corroborating reports and awards one
  credibility point to every distinct user involved (two or more required)
"""

from credibility_system.scoring.geo import distance_meters, haversine_km
from credibility_system.scoring.matching import (
    are_adjacent,
    has_same_issue,
    is_corroborating,
)
from credibility_system.scoring.corroboration_scorer import (
    CorroborationOutcome,
    CorroborationScorer,
)

__all__ = [
    "haversine_km",
    "distance_meters",
    "are_adjacent",
    "has_same_issue",
    "is_corroborating",
    "CorroborationScorer",
    "CorroborationOutcome",
]
