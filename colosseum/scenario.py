"""Random poker scenario generation.

Draws come from tiered buckets so values cluster around what shows up at real
tables (100bb cash stacks, 20-40bb tournament stacks, 5-8bb single-raised
pots) instead of uniform noise.
"""

import random

from colosseum.models import Scenario

ALL_IN_POT_TYPE = "Limped Pot / All-in situation"

HAND_RANGES = {
    "premium": ["AA", "KK", "QQ", "JJ", "TT", "AKs", "AQs", "AJs", "KQs", "AKo", "AQo"],
    "playable": [
        "99", "88", "77", "66", "55", "44", "33", "22", "ATs", "KJs", "KTs",
        "QJs", "QTs", "JTs", "AJo", "KQo", "KJo", "QJo",
    ],
    "speculative": [
        "T9s", "98s", "87s", "76s", "65s", "54s", "A9s", "A8s", "A7s", "A5s",
        "A4s", "A3s", "A2s", "K9s", "Q9s", "J9s",
    ],
}

_RANKS = ["A", "K", "Q", "J", "T", "9", "8", "7", "6", "5", "4", "3", "2"]

CONTEXTS = [
    "Opponent is a Calling Station",
    "Opponent is a Maniac (Aggro)",
    "Villain is a Nit (Tight)",
    "Hero has a tight image",
    "Dynamic Board Texture",
    "Villain just lost a huge pot (Tilt?)",
    "Standard Reg vs Reg",
]

MTT_CONTEXTS = [
    "Bubble Period (ICM pressure extreme)",
    "Final Table (Huge Payjump)",
    "Bounty Tournament (KO incentive)",
]


def _random_hand(rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.30:
        return rng.choice(HAND_RANGES["premium"])
    if roll < 0.70:
        return rng.choice(HAND_RANGES["playable"])
    if roll < 0.90:
        return rng.choice(HAND_RANGES["speculative"])

    # Anything goes: 10% of hands are a uniformly random combination.
    first = rng.choice(_RANKS)
    second = rng.choice(_RANKS)
    if first == second:
        return f"{first}{first}"
    return f"{first}{second}{rng.choice(['s', 'o'])}"


def _stack_depth(game_type: str, rng: random.Random) -> int:
    roll = rng.random()
    if game_type == "Cash":
        if roll < 0.6:
            return 100
        if roll < 0.8:
            return rng.randint(150, 300)
        return rng.randint(40, 90)
    # MTT: push/fold, standard, deep
    if roll < 0.3:
        return rng.randint(5, 15)
    if roll < 0.7:
        return rng.randint(20, 40)
    return rng.randint(41, 80)


def _pot(rng: random.Random) -> tuple[str, int]:
    roll = rng.random()
    if roll < 0.65:
        return "Single Raised Pot (SRP)", rng.randint(5, 8)
    if roll < 0.9:
        return "3-Bet Pot", rng.randint(18, 25)
    return "4-Bet Pot", rng.randint(40, 55)


def _duration_mode(rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.2:
        return "Short"
    if roll > 0.8:
        return "Long"
    return "Medium"


def generate_random_scenario(rng: random.Random | None = None) -> Scenario:
    """Draw a fresh scenario.

    A stack shorter than half the drawn pot cannot have produced that pot, so
    the situation is downgraded to an all-in/limped spot with the pot clamped
    to the stack.
    """
    rng = rng if rng is not None else random.Random()

    game_type = "Cash" if rng.random() > 0.5 else "MTT"
    stack_depth = _stack_depth(game_type, rng)
    pot_type, pot_size = _pot(rng)

    if stack_depth < pot_size / 2:
        pot_type = ALL_IN_POT_TYPE
        pot_size = stack_depth

    contexts = list(CONTEXTS)
    if game_type == "MTT":
        contexts.extend(MTT_CONTEXTS)

    return Scenario(
        game_type=game_type,
        players=6,
        stack_depth=stack_depth,
        pot_size=pot_size,
        pot_type=pot_type,
        hero_hand=_random_hand(rng),
        context=rng.choice(contexts),
        duration_mode=_duration_mode(rng),
    )


def spr(scenario: Scenario | None) -> str:
    """Stack-to-pot ratio with two decimals, or "Unknown" without a pot."""
    if scenario is None or not scenario.stack_depth or scenario.pot_size <= 0:
        return "Unknown"
    return f"{scenario.stack_depth / scenario.pot_size:.2f}"
