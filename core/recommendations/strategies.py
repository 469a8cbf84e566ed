"""Recommendation strategies — pure candidate builders.

Each strategy turns already-fetched inputs (the user's taste rows and
catalog lookups) into a bounded list of ``RecommendationRecord``. The
fetching happens in db/ and providers/; keeping the strategies pure means
the blend order, caps and reasons are testable without a database or the
network.

Strategies, in blend order:

    similar_artist     Tracks by artists related to the user's own artists.
    trending_friends   Friends' posts ranked by likes + comments.
    genre_exploration  One track per requested/preferred genre.
    mood_based         One track matching the requested mood.

Plus ``trending_recommendations`` — the general source used for anonymous
users and as the fallback when every personalized strategy fails.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from core.feed.types import RecommendationRecord
from core.recommendations.types import CatalogTrack

SIMILAR_ARTIST_CONFIDENCE = 0.9
TRENDING_FRIENDS_CONFIDENCE = 0.7
GENRE_EXPLORATION_CONFIDENCE = 0.6
MOOD_BASED_CONFIDENCE = 0.8
TRENDING_CONFIDENCE = 0.8

MOODS: tuple[str, ...] = ("happy", "chill", "energetic", "melancholic")

_ENERGY_MOODS: dict[str, str] = {
    "high": "energetic",
    "low": "chill",
}
_DEFAULT_MOOD = "happy"


def _from_catalog(
    track: CatalogTrack,
    *,
    id_prefix: str,
    reason: str,
    rec_type: Any,
    confidence: float,
) -> RecommendationRecord:
    return RecommendationRecord(
        id=f"{id_prefix}_{track.id}",
        title=track.title,
        artist=track.artist,
        album=track.album,
        artwork=track.artwork,
        url=track.url,
        popularity=track.popularity,
        explicit=track.explicit,
        recommendation_reason=reason,
        recommendation_type=rec_type,
        confidence=confidence,
    )


# ---------------------------------------------------------------------------
# similar_artist
# ---------------------------------------------------------------------------


def seed_artists(
    post_artists: Iterable[str | None],
    liked_artists: Iterable[str | None],
    count: int,
) -> list[str]:
    """Distinct artists from recent posts, then recent likes, first-seen order.

    Args:
        post_artists: Artists of the user's most recent posts, newest first.
        liked_artists: Artists of posts the user liked, newest first.
            ``None`` entries (liked post deleted) are skipped.
        count: Maximum seeds to return.
    """
    seeds: list[str] = []
    for artist in (*post_artists, *liked_artists):
        if not artist or artist in seeds:
            continue
        seeds.append(artist)
        if len(seeds) >= count:
            break
    return seeds


def similar_artist(
    related: Sequence[tuple[str, Sequence[CatalogTrack]]],
    cap: int,
) -> list[RecommendationRecord]:
    """Recommend related-artist tracks for each seed artist, in seed order.

    Args:
        related: ``(seed_artist, tracks)`` pairs where *tracks* are top
            tracks of artists the catalog considers related to the seed.
        cap: Maximum candidates.
    """
    records: list[RecommendationRecord] = []
    for seed, tracks in related:
        for track in tracks:
            if len(records) >= cap:
                return records
            records.append(
                _from_catalog(
                    track,
                    id_prefix="similar",
                    reason=f"Similar to {seed}",
                    rec_type="similar_artist",
                    confidence=SIMILAR_ARTIST_CONFIDENCE,
                )
            )
    return records


# ---------------------------------------------------------------------------
# trending_friends
# ---------------------------------------------------------------------------


def trending_friends(friend_posts: Sequence[Any], cap: int) -> list[RecommendationRecord]:
    """Rank friends' posts by ``like_count + comment_count``, stable on ties.

    Args:
        friend_posts: Post rows (``id``, ``track_title``, ``track_artist``,
            ``track_album``, ``track_artwork_url``, ``track_spotify_url``,
            ``like_count``, ``comment_count``).
        cap: Maximum candidates.
    """
    records = [
        RecommendationRecord(
            id=f"friend_{post.id}",
            title=post.track_title,
            artist=post.track_artist,
            album=getattr(post, "track_album", None),
            artwork=getattr(post, "track_artwork_url", None),
            url=getattr(post, "track_spotify_url", None),
            popularity=(post.like_count or 0) + (post.comment_count or 0),
            explicit=False,
            recommendation_reason="Popular with friends",
            recommendation_type="trending_friends",
            confidence=TRENDING_FRIENDS_CONFIDENCE,
        )
        for post in friend_posts
        if post.track_title and post.track_artist
    ]
    records.sort(key=lambda record: record.popularity, reverse=True)
    return records[:cap]


# ---------------------------------------------------------------------------
# genre_exploration
# ---------------------------------------------------------------------------


def exploration_genres(
    requested: str | None,
    preferred: Sequence[str] | None,
    defaults: Sequence[str],
) -> list[str]:
    """Requested genre first, then profile preferences (or defaults), deduped."""
    ordered: list[str] = []
    for genre in (requested, *(preferred or defaults)):
        if not genre:
            continue
        genre = genre.strip().lower()
        if genre and genre not in ordered:
            ordered.append(genre)
    return ordered


def genre_exploration(
    genre_tracks: Sequence[tuple[str, CatalogTrack | None]],
    cap: int,
) -> list[RecommendationRecord]:
    """One recommendation per genre that produced a catalog track.

    Args:
        genre_tracks: ``(genre, track)`` pairs; ``track`` is None when the
            catalog had nothing for that genre.
        cap: Maximum candidates.
    """
    records: list[RecommendationRecord] = []
    for genre, track in genre_tracks:
        if track is None:
            continue
        records.append(
            _from_catalog(
                track,
                id_prefix=f"genre_{genre}",
                reason=f"Explore {genre} music",
                rec_type="genre_exploration",
                confidence=GENRE_EXPLORATION_CONFIDENCE,
            )
        )
        if len(records) >= cap:
            break
    return records


# ---------------------------------------------------------------------------
# mood_based
# ---------------------------------------------------------------------------


def resolve_mood(mood: str | None, energy: str | None) -> str:
    """Pick the mood deterministically: explicit mood, else energy, else happy."""
    if mood and mood.strip():
        return mood.strip().lower()
    if energy:
        return _ENERGY_MOODS.get(energy.strip().lower(), _DEFAULT_MOOD)
    return _DEFAULT_MOOD


def mood_based(mood: str, tracks: Sequence[CatalogTrack], cap: int) -> list[RecommendationRecord]:
    """Recommend catalog tracks matching *mood*."""
    return [
        _from_catalog(
            track,
            id_prefix=f"mood_{mood}",
            reason=f"Perfect for {mood} mood",
            rec_type="mood_based",
            confidence=MOOD_BASED_CONFIDENCE,
        )
        for track in tracks[:cap]
    ]


# ---------------------------------------------------------------------------
# trending (general source)
# ---------------------------------------------------------------------------


def trending_recommendations(tracks: Sequence[CatalogTrack]) -> list[RecommendationRecord]:
    """Wrap chart tracks as general, non-personalized recommendations."""
    return [
        RecommendationRecord(
            id=track.id,
            title=track.title,
            artist=track.artist,
            album=track.album,
            artwork=track.artwork,
            url=track.url,
            popularity=track.popularity,
            explicit=track.explicit,
            recommendation_reason="Trending now",
            recommendation_type="trending",
            confidence=TRENDING_CONFIDENCE,
        )
        for track in tracks
    ]
