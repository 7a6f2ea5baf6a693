# badgeviewer/services/collection_constants.py

"""Configuration tables for collection tracking.

Defines which badge sets are excluded from "globally collectible"
accounting and the rank tiers derived from the collected percentage.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CollectionRank",
    "DENYLISTED_SET_IDS",
    "NON_COLLECTIBLE_BADGE_SETS",
    "RANK_TIERS",
    "UNRANKED",
    "is_in_denylist",
]

# Badge sets that cannot be earned globally, grouped by why
NON_COLLECTIBLE_BADGE_SETS: dict[str, frozenset[str]] = {
    "channel_roles": frozenset(
        {
            "broadcaster",
            "subscriber",
            "sub-gifter",
            "sub-gift-leader",
            "founder",
            "vip",
            "moderator",
            "lead_moderator",
            "artist-badge",
        }
    ),
    "cheering": frozenset({"bits", "bits-leader", "bits-charity", "anonymous-cheerer"}),
    "hype_train": frozenset({"hype-train"}),
    "predictions": frozenset({"predictions"}),
    "staff": frozenset({"staff", "admin", "global_mod", "moderator-verified", "automod"}),
    "paid_tiers": frozenset({"turbo", "premium"}),
    "programs": frozenset({"ambassador", "partner", "twitch-recap", "clip-champ"}),
    "anniversary": frozenset({"anniversary", "twitchbot"}),
    "developer": frozenset({"extension", "bot-badge", "twitch-dj"}),
    "accessibility": frozenset({"no_audio", "no_video"}),
    "limited_events": frozenset({"moments", "glhf-pledge", "glitchcon2020", "twitchcon-2017"}),
}

DENYLISTED_SET_IDS: frozenset[str] = frozenset().union(*NON_COLLECTIBLE_BADGE_SETS.values())


def is_in_denylist(set_id: str) -> bool:
    """Whether ``set_id`` belongs to a non-globally-earnable category."""
    return set_id in DENYLISTED_SET_IDS


@dataclass(frozen=True)
class CollectionRank:
    """A rank tier unlocked at ``min_percentage`` of the collectible badges."""

    name: str
    min_percentage: float
    color: str


# Highest floor first; the last entry is shown when no tier is reached
RANK_TIERS: tuple[CollectionRank, ...] = (
    CollectionRank("Legend", 95.0, "#ff4f8b"),
    CollectionRank("Grandmaster", 85.0, "#e0463c"),
    CollectionRank("Master", 73.0, "#f08c2e"),
    CollectionRank("Diamond", 59.0, "#49c6e5"),
    CollectionRank("Platinum", 47.0, "#3fbfa3"),
    CollectionRank("Gold", 35.0, "#e8b923"),
    CollectionRank("Silver", 23.0, "#b8c0cc"),
    CollectionRank("Bronze", 13.0, "#c07a45"),
    CollectionRank("Iron", 6.0, "#8a8f98"),
    CollectionRank("Novice", 0.1, "#9b8ec4"),
    CollectionRank("Unranked", 0.0, "#5c5f66"),
)

UNRANKED: CollectionRank = RANK_TIERS[-1]
