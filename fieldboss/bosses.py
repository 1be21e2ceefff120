"""Static field boss catalog."""

from typing import Dict, List, Optional

from .errors import UnknownBoss
from .models import Boss

CATEGORIES = ("short", "long", "scheduled")

CATEGORY_LABELS = {
    "short": "Short Cycle (10-21h)",
    "long": "Long Cycle (24-48h)",
    "scheduled": "Scheduled Bosses",
}

BOSSES: List[Boss] = [
    # Short cycle
    Boss("venatus", "Venatus", 60, "Corrupted River Stream", 10, "short"),
    Boss("viorent", "Viorent", 65, "Gill Stream", 10, "short"),
    Boss("ego", "Ego", 70, "Reclaimed Gathering Point", 21, "short"),
    Boss("araneo", "Araneo", 83, "Limestone Cavern", 12, "short"),
    Boss("undomiel", "Undomiel", 85, "Pearlharbor Passage", 18, "short"),
    Boss("livera", "Livera", 90, "Hermit's Hideaway", 20, "short"),

    # Long cycle
    Boss("ladydalia", "Lady Dalia", 83, "Coral Beach", 24, "long"),
    Boss("generalaquleus", "General Aquleus", 85, "Lower Tomb of Tyriosa 2F", 29, "long"),
    Boss("amentis", "Amentis", 88, "Limestone Cape", 29, "long"),
    Boss("ordo", "Ordo", 90, "Limestone Waterway", 48, "long"),
    Boss("larba", "Larba", 98, "Garbana Reclaimed Land", 35, "long"),
    Boss("ringor", "Ringor", 90, "Deserted Nest", 39, "long"),
    Boss("thymele", "Thymele", 85, "Sludie Snow Field", 37, "long"),
    Boss("milavy", "Milavy", 90, "Coralline Shallows", 43, "long"),
    Boss("gareth", "Gareth", 98, "Deadman's Land District 1", 32, "long"),
    Boss("titore", "Titore", 98, "Deadman's Land District 2", 37, "long"),
    Boss("metus", "Metus", 93, "Follower's Field", 48, "long"),
    Boss("duplican", "Duplican", 93, "Open-Eyed Puppet's Throne", 48, "long"),
    Boss("shuliar", "Shuliar", 95, "Masquerade of Hounds", 35, "long"),
    Boss("catena", "Catena", 100, "Deadman's Land District 3", 35, "long"),

    # Scheduled (fixed spawn times are shown, not enforced)
    Boss("auraq", "Auraq", 100, "Deadman's Land District 4", 24, "scheduled", ("12:00", "20:00")),
    Boss("rohtahzek", "Rohtahzek", 95, "Rohtah Cave", 24, "scheduled", ("14:00", "22:00")),
    Boss("mutanus", "Mutanus", 90, "Mutant's Nest", 12, "scheduled", ("06:00", "12:00", "18:00")),
    Boss("grezak", "Grezak", 88, "Grezak's Lair", 18, "scheduled", ("08:00", "20:00")),
    Boss("godhun", "Godhun", 85, "Godhun's Territory", 24, "scheduled", ("10:00", "18:00")),
    Boss("taros", "Taros", 83, "Taros Valley", 16, "scheduled", ("07:00", "15:00", "23:00")),
    Boss("kazar", "Kazar", 80, "Kazar's Domain", 20, "scheduled", ("09:00", "21:00")),
]

_BY_ID: Dict[str, Boss] = {boss.id: boss for boss in BOSSES}


def get_boss(boss_id: str) -> Optional[Boss]:
    """Look up a boss by its slug."""
    return _BY_ID.get(boss_id)


def require_boss(boss_id: str) -> Boss:
    """Look up a boss by its slug, raising UnknownBoss if it is missing."""
    boss = _BY_ID.get(boss_id)
    if boss is None:
        raise UnknownBoss(boss_id)
    return boss


def slugify(name: str) -> str:
    """Turn a typed boss name into a catalog slug ('Lady Dalia' -> 'ladydalia')."""
    return "".join(name.lower().split())


def resolve_boss(query: str) -> Boss:
    """Resolve a slug or display name typed by a user."""
    boss = _BY_ID.get(slugify(query)) or _BY_ID.get(query)
    if boss is None:
        raise UnknownBoss(query)
    return boss


def bosses_by_category(category: str) -> List[Boss]:
    """Get all bosses in a category, in catalog order."""
    return [boss for boss in BOSSES if boss.category == category]


def search_bosses(query: str) -> List[Boss]:
    """Find bosses whose name or location contains the query."""
    needle = query.lower()
    return [
        boss for boss in BOSSES
        if needle in boss.name.lower() or needle in boss.location.lower()
    ]
