from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .state import UserProgress

DAYS = "total_days_completed"
STREAK = "streak_days"
GLASSES = "total_glasses"


@dataclass(frozen=True)
class Reward:
    id: str
    name: str
    icon: str
    metric: str
    threshold: int
    description: str = ""

    def is_met(self, stats: Dict[str, int]) -> bool:
        return stats.get(self.metric, 0) >= self.threshold


BADGES: Tuple[Reward, ...] = (
    Reward("first-day", "First Drop", "💧", DAYS, 1, "Complete your first day"),
    Reward("week-warrior", "Week Warrior", "🔥", STREAK, 7, "7 day streak"),
    Reward("hydration-hero", "Hydration Hero", "🦸", DAYS, 30, "30 days completed"),
    Reward("century-club", "Century Club", "💯", GLASSES, 100, "100 glasses total"),
    Reward("dedication", "Dedication", "⭐", STREAK, 30, "30 day streak"),
    Reward("champion", "Champion", "🏆", DAYS, 100, "100 days completed"),
)

STICKERS: Tuple[Reward, ...] = (
    Reward("star", "Gold Star", "⭐", DAYS, 1),
    Reward("heart", "Heart", "❤️", DAYS, 3),
    Reward("trophy", "Trophy", "🏆", DAYS, 5),
    Reward("medal", "Medal", "🥇", STREAK, 7),
    Reward("crown", "Crown", "👑", STREAK, 14),
    Reward("diamond", "Diamond", "💎", DAYS, 20),
)

ACCESSORIES: Tuple[Reward, ...] = (
    Reward("sunglasses", "Sunglasses", "🕶️", DAYS, 3),
    Reward("hat", "Hat", "🎩", STREAK, 5),
    Reward("bow", "Bow", "🎀", DAYS, 7),
    Reward("crown", "Crown", "👑", STREAK, 10),
    Reward("wizard-hat", "Wizard Hat", "🧙", DAYS, 15),
    Reward("party-hat", "Party Hat", "🎉", STREAK, 20),
)

# (kind, catalog, name of the unlocked list on UserProgress, announcement)
CATALOGS = (
    ("badge", BADGES, "unlocked_badges", "🎖️ New Badge Unlocked: {name}!"),
    ("sticker", STICKERS, "unlocked_stickers", "⭐ New Sticker Earned: {name}!"),
    ("accessory", ACCESSORIES, "unlocked_accessories", "👑 New Accessory Unlocked: {name}!"),
)


def reward_stats(progress: UserProgress) -> Dict[str, int]:
    return {
        DAYS: progress.total_days_completed(),
        STREAK: progress.streak_days,
        GLASSES: progress.total_glasses,
    }


def find_accessory(accessory_id: str) -> Reward | None:
    return next((a for a in ACCESSORIES if a.id == accessory_id), None)


def evaluate_unlocks(progress: UserProgress) -> List[Tuple[str, Reward, str]]:
    """Append newly earned reward ids to the unlocked lists.

    Returns ``(kind, reward, announcement)`` for each identifier added by this
    call. Identifiers are never removed, and one already present is skipped.
    """
    stats = reward_stats(progress)
    unlocked: List[Tuple[str, Reward, str]] = []

    for kind, catalog, attr, template in CATALOGS:
        owned: List[str] = getattr(progress, attr)
        for reward in catalog:
            if reward.id in owned or not reward.is_met(stats):
                continue
            owned.append(reward.id)
            unlocked.append((kind, reward, template.format(name=reward.name)))

    return unlocked


def catalog_view(progress: UserProgress) -> Dict[str, List[Dict[str, object]]]:
    view: Dict[str, List[Dict[str, object]]] = {}
    for kind, catalog, attr, _ in CATALOGS:
        owned = set(getattr(progress, attr))
        view[kind] = [
            {
                "id": r.id,
                "name": r.name,
                "icon": r.icon if r.id in owned else "🔒",
                "description": r.description,
                "unlocked": r.id in owned,
                "worn": kind == "accessory" and progress.current_accessory == r.id,
            }
            for r in catalog
        ]
    return view
