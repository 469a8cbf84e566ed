"""
Configuration dataclasses for feed aggregation.

These immutable config objects decouple tuning parameters from handler
signatures, making it easy to define standard configurations and reuse them
across the activity, notification and recommendation pipelines.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# Per-strategy candidate caps, in blend order.
# Kept as a module constant so the blender and its tests share one source.
DEFAULT_STRATEGY_CAPS: Mapping[str, int] = MappingProxyType(
    {
        "similar_artist": 5,
        "trending_friends": 5,
        "genre_exploration": 3,
        "mood_based": 1,
    }
)

DEFAULT_GENRES: tuple[str, ...] = ("pop", "rock", "electronic")


@dataclass(frozen=True)
class FeedConfig:
    """
    Configuration for feed aggregation and recommendation blending.

    Attributes:
        source_row_cap: Maximum rows any single event source may return.
            Bounds the underlying query, not the page. Defaults to 1000 so
            ``total`` reflects the whole filtered set for normal accounts.
        max_page_size: Upper bound accepted for a request's ``limit``.
        seed_artist_count: How many distinct seed artists the similar-artist
            strategy expands.
        recent_post_window: How many of the user's recent posts feed the
            similar-artist seeds.
        recent_like_window: How many of the user's recent likes feed the
            similar-artist seeds.
        friend_window: How many accepted friendships feed the
            trending-friends strategy.
        strategy_caps: Maximum candidates per strategy. Stored read-only and
            left out of the hash.
        default_genres: Genres explored when the profile has no preference.
        share_ttl_days: Lifetime of a share link.

    Example:
        >>> config = FeedConfig(source_row_cap=200)
        >>> page = paginate(records, offset=0, limit=20)
    """

    source_row_cap: int = 1000
    max_page_size: int = 1000
    seed_artist_count: int = 3
    recent_post_window: int = 10
    recent_like_window: int = 20
    friend_window: int = 5
    strategy_caps: Mapping[str, int] = field(
        default_factory=lambda: DEFAULT_STRATEGY_CAPS, hash=False
    )
    default_genres: tuple[str, ...] = DEFAULT_GENRES
    share_ttl_days: int = 30

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.source_row_cap <= 0:
            raise ValueError(f"source_row_cap must be positive, got {self.source_row_cap}")
        if self.max_page_size <= 0:
            raise ValueError(f"max_page_size must be positive, got {self.max_page_size}")
        if self.seed_artist_count <= 0:
            raise ValueError(f"seed_artist_count must be positive, got {self.seed_artist_count}")
        if self.share_ttl_days <= 0:
            raise ValueError(f"share_ttl_days must be positive, got {self.share_ttl_days}")
        unknown = set(self.strategy_caps) - set(DEFAULT_STRATEGY_CAPS)
        if unknown:
            raise ValueError(
                f"Unknown strategies {sorted(unknown)}, "
                f"valid options: {sorted(DEFAULT_STRATEGY_CAPS)}"
            )
        for name, cap in self.strategy_caps.items():
            if cap < 0:
                raise ValueError(f"strategy cap for {name!r} must be non-negative, got {cap}")
        # Read-only copy, so a shared config cannot be changed through its caps.
        object.__setattr__(self, "strategy_caps", MappingProxyType(dict(self.strategy_caps)))

    def cap_for(self, strategy: str) -> int:
        """Return the candidate cap for *strategy* (0 when unconfigured)."""
        return self.strategy_caps.get(strategy, 0)


# Pre-defined configurations

DEFAULT_CONFIG = FeedConfig()
"""Default configuration: 1000 rows per source, standard strategy caps."""

SMALL_ACCOUNT_CONFIG = FeedConfig(source_row_cap=200, max_page_size=100)
"""Tighter source caps for low-memory deployments."""
