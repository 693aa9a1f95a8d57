"""Matching package."""

from petmatch.matching.candidates import CandidateSelector
from petmatch.matching.orchestrator import MatchingOrchestrator
from petmatch.matching.scoring import MatchScoringEngine, match_level_for
from petmatch.matching.similarity import cosine_similarity, days_between, haversine_distance_km

__all__ = [
    "CandidateSelector",
    "MatchingOrchestrator",
    "MatchScoringEngine",
    "match_level_for",
    "cosine_similarity",
    "days_between",
    "haversine_distance_km",
]
