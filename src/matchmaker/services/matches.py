"""Stub recommendation source backed by a fixed demo catalog."""

import random
from dataclasses import dataclass, field

from matchmaker.domain.options import GENDER_OPTIONS
from matchmaker.domain.sessions import MatchCandidate
from matchmaker.services.actions import MatchFinder


@dataclass(frozen=True)
class DemoProfile:
    """A catalog entry used by the demo matcher."""

    id: str
    name: str
    age: int
    gender: str
    schools: tuple[str, ...]
    interests: tuple[str, ...]
    bio: str


DEMO_PROFILES: tuple[DemoProfile, ...] = (
    DemoProfile(
        "demo_01",
        "Matt",
        19,
        "Male",
        ("Indiana University",),
        ("beach days", "movies"),
        "Laid-back adventure buddy who still shows up for study nights.",
    ),
    DemoProfile(
        "demo_02",
        "Jimmy",
        19,
        "Male",
        ("Indiana State",),
        ("football", "music", "working out"),
        "Group jokester who always has the weekend plan and the playlist.",
    ),
    DemoProfile(
        "demo_03",
        "Landon",
        21,
        "Male",
        ("Indiana State",),
        ("camping", "fishing", "cooking"),
        "Outdoorsy and loyal; happiest cooking over a campfire with friends.",
    ),
    DemoProfile(
        "demo_04",
        "Sai",
        19,
        "Male",
        ("Indiana University",),
        ("gaming", "movies", "climbing"),
        "Quiet at first, then the friend everyone turns to for advice.",
    ),
    DemoProfile(
        "demo_05",
        "Priya",
        20,
        "Female",
        ("Purdue University",),
        ("painting", "coffee", "running"),
        "Morning runner with a sketchbook and strong opinions on espresso.",
    ),
    DemoProfile(
        "demo_06",
        "Maya",
        22,
        "Female",
        ("Indiana University",),
        ("travel", "photography", "food"),
        "Has a list of every taco spot within fifty miles and wants company.",
    ),
    DemoProfile(
        "demo_07",
        "Chloe",
        21,
        "Female",
        ("Butler University",),
        ("theatre", "karaoke", "dogs"),
        "Musical theatre kid who never turns down karaoke night.",
    ),
    DemoProfile(
        "demo_08",
        "Riley",
        20,
        "Non-binary",
        ("Ball State University",),
        ("board games", "hiking", "baking"),
        "Board game host and weekend baker looking for a hiking partner.",
    ),
)


def _describe(profile: DemoProfile) -> str:
    interests = ", ".join(profile.interests[:2])
    return f"{profile.schools[0]}, into {interests}. {profile.bio}"


@dataclass
class RandomSampleMatcher(MatchFinder):
    """Returns a random sample of demo profiles, filtered by preference."""

    catalog: tuple[DemoProfile, ...] = DEMO_PROFILES
    rng: random.Random = field(default_factory=random.Random)

    async def find_candidates(
        self, profile: dict[str, object], limit: int
    ) -> list[MatchCandidate]:
        """Return up to `limit` candidates; never more than the catalog holds."""
        wanted = profile.get("interested_in")
        if wanted not in GENDER_OPTIONS:
            wanted = None
        pool = [
            entry for entry in self.catalog if wanted is None or entry.gender == wanted
        ]
        picks = self.rng.sample(pool, k=min(limit, len(pool)))
        return [
            MatchCandidate(
                id=entry.id,
                name=entry.name,
                age=entry.age,
                description=_describe(entry),
            )
            for entry in picks
        ]
