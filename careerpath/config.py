"""Scoring configuration and environment settings."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

load_dotenv()

# Environment settings
MODEL = os.getenv("CAREERPATH_MODEL", "gemini-2.5-flash")
CHAT_TIMEOUT_SECONDS = float(os.getenv("CAREERPATH_CHAT_TIMEOUT", "30"))
SESSION_TTL_HOURS = float(os.getenv("CAREERPATH_SESSION_TTL_HOURS", "24"))
MAX_SESSIONS = int(os.getenv("CAREERPATH_MAX_SESSIONS", "1000"))

# Result-size limits
FULL_CATALOG_RESOURCE_LIMIT = 15
INLINE_RESOURCE_LIMIT = 4
CHAT_CONTEXT_JOB_LIMIT = 20
CHAT_CONTEXT_RESOURCE_LIMIT = 50
TRACK_GAP_LIMIT = 10


class ScoringConfig(BaseModel):
    """Weights and thresholds used by the scorer and the gap aggregator.

    The defaults (60/25/15 weights, 50%/25% priority cut-offs) are product
    tunables, not derived values.  Pass a different instance to try an
    alternate weighting without touching the scoring code.
    """

    skill_weight: float = Field(default=0.60, ge=0, description="Weight of the skill sub-score")
    experience_weight: float = Field(default=0.25, ge=0, description="Weight of the experience sub-score")
    track_weight: float = Field(default=0.15, ge=0, description="Weight of the track sub-score")
    experience_tier_penalty: int = Field(
        default=50, ge=0, le=100, description="Points lost per experience tier below the requirement"
    )
    neutral_score: int = Field(
        default=50, ge=0, le=100, description="Experience sub-score when either level is unknown"
    )
    high_priority_threshold: float = Field(
        default=50.0, ge=0, le=100, description="Minimum frequency percentage for a 'high' gap"
    )
    medium_priority_threshold: float = Field(
        default=25.0, ge=0, le=100, description="Minimum frequency percentage for a 'medium' gap"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_consistency(self) -> "ScoringConfig":
        if self.skill_weight + self.experience_weight + self.track_weight <= 0:
            raise ValueError("At least one scoring weight must be positive")
        if self.medium_priority_threshold > self.high_priority_threshold:
            raise ValueError("medium_priority_threshold must not exceed high_priority_threshold")
        return self

    @property
    def total_weight(self) -> float:
        return self.skill_weight + self.experience_weight + self.track_weight


DEFAULT_SCORING = ScoringConfig()
