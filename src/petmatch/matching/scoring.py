"""Weighted multi-factor scoring of lost/found report pairs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from petmatch.config import Settings
from petmatch.matching.similarity import cosine_similarity, days_between, haversine_distance_km
from petmatch.models import MatchDetails, MatchLevel, Report, ScoreResult, VisualTier


SPECIES_POINTS = 30
BREED_POINTS = 20
VISUAL_HIGH_POINTS = 40
VISUAL_MEDIUM_POINTS = 20
MAX_SCORE = 100

VISUAL_HIGH_THRESHOLD = 0.95
VISUAL_MEDIUM_THRESHOLD = 0.88

HIGH_LEVEL_SCORE = 70
MEDIUM_LEVEL_SCORE = 30

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def match_level_for(score: int) -> MatchLevel:
    """Classify a score: >=70 high, 30-69 medium, below 30 low."""
    if score >= HIGH_LEVEL_SCORE:
        return MatchLevel.HIGH
    if score >= MEDIUM_LEVEL_SCORE:
        return MatchLevel.MEDIUM
    return MatchLevel.LOW


def visual_tier_for(similarity: float) -> VisualTier:
    if similarity > VISUAL_HIGH_THRESHOLD:
        return VisualTier.HIGH
    if similarity > VISUAL_MEDIUM_THRESHOLD:
        return VisualTier.MEDIUM
    return VisualTier.NONE


def rank_key(score: int, found: Report) -> tuple[int, float, str]:
    """Sort key: score descending, most recent found report first, then id."""
    created = found.created_at or _EPOCH
    return (-score, -created.timestamp(), found.id or "")


def _same_text(left: str, right: str) -> bool:
    left_norm = (left or "").strip().lower()
    right_norm = (right or "").strip().lower()
    return left_norm == right_norm


class MatchScoringEngine:
    """Combine attribute, visual, geographic and temporal evidence into a score."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def score(self, lost: Report, found: Report) -> ScoreResult:
        """Score a lost/found pair. Pure: reads both reports, writes nothing."""
        details = MatchDetails()
        score = 0

        if _same_text(lost.species, found.species):
            score += SPECIES_POINTS
            details.species = True

        if _same_text(lost.breed, found.breed):
            score += BREED_POINTS
            details.breed = True

        details.color = _same_text(lost.color, found.color)
        details.sex = _same_text(lost.sex, found.sex)

        score += self._score_visual(lost, found, details)
        self._apply_proximity(lost, found, details)
        self._apply_timeframe(lost, found, details)

        score = min(score, MAX_SCORE)
        return ScoreResult(score=score, match_level=match_level_for(score), match_details=details)

    def _score_visual(self, lost: Report, found: Report, details: MatchDetails) -> int:
        lost_vec = lost.image_vector
        found_vec = found.image_vector
        if not lost_vec or not found_vec or len(lost_vec) != len(found_vec):
            return 0

        similarity = cosine_similarity(lost_vec, found_vec)
        tier = visual_tier_for(similarity)
        details.visual = tier
        details.visual_similarity = round(similarity, 4)
        if tier is VisualTier.HIGH:
            return VISUAL_HIGH_POINTS
        if tier is VisualTier.MEDIUM:
            return VISUAL_MEDIUM_POINTS
        return 0

    def _apply_proximity(self, lost: Report, found: Report, details: MatchDetails) -> None:
        if not (lost.location.has_coordinates and found.location.has_coordinates):
            return

        distance = haversine_distance_km(
            lost.location.latitude,
            lost.location.longitude,
            found.location.latitude,
            found.location.longitude,
        )
        details.distance_km = round(distance, 2)
        details.location = distance <= self.settings.match_location_radius_km

    def _apply_timeframe(self, lost: Report, found: Report, details: MatchDetails) -> None:
        lost_time = lost.event_time
        found_time = found.event_time
        if lost_time is None or found_time is None:
            return

        days = days_between(lost_time, found_time)
        details.days_difference = days
        details.timeframe = days <= self.settings.match_timeframe_days
