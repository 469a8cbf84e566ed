"""Pydantic schemas for the ``/api/recommendations`` endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from core.feed.types import RecommendationRecord


class RecommendationItem(BaseModel):
    id: str
    title: str
    artist: str
    album: str | None = None
    artwork: str | None = None
    url: str | None = None
    popularity: float = 0
    explicit: bool = False
    recommendation_reason: str
    recommendation_type: Literal[
        "trending", "similar_artist", "trending_friends", "genre_exploration", "mood_based"
    ]
    confidence: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_record(cls, record: RecommendationRecord) -> RecommendationItem:
        return cls(
            id=record.id,
            title=record.title,
            artist=record.artist,
            album=record.album,
            artwork=record.artwork,
            url=record.url,
            popularity=record.popularity,
            explicit=record.explicit,
            recommendation_reason=record.recommendation_reason,
            recommendation_type=record.recommendation_type,
            confidence=record.confidence,
        )


class RecommendationsResponse(BaseModel):
    success: bool = True
    recommendations: list[RecommendationItem]
    total: int
    has_more: bool
    personalized: bool = Field(
        ..., description="False when the trending source served the request."
    )
    timestamp: datetime
