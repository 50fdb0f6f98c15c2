"""Vote aggregation and vote submission."""

import logging
import math
from collections.abc import Iterable

from colosseum.models import SIDES, VoteTally
from colosseum.storage.base import DebateStore

logger = logging.getLogger(__name__)


class InvalidVoteError(ValueError):
    """Raised for a vote side outside gto/exploit or a missing debate id."""


class DebateNotFoundError(LookupError):
    """Raised when a debate id does not resolve to a stored row."""

    def __init__(self, debate_id: str) -> None:
        self.debate_id = debate_id
        super().__init__(f"Debate not found: {debate_id}")


def split_percentages(gto: int, exploit: int) -> tuple[int, int]:
    """Integer shares that always sum to 100.

    The GTO share is rounded half up and the exploit share is its complement.
    With no votes at all the split is 50/50.
    """
    total = gto + exploit
    if total <= 0:
        return 50, 50
    gto_percent = math.floor(gto / total * 100 + 0.5)
    return gto_percent, 100 - gto_percent


def tally_votes(pairs: Iterable[tuple[int, int]]) -> VoteTally:
    """Sum (votes_gto, votes_exploit) pairs across debates."""
    gto = exploit = battles = 0
    for votes_gto, votes_exploit in pairs:
        gto += votes_gto
        exploit += votes_exploit
        battles += 1
    gto_percent, exploit_percent = split_percentages(gto, exploit)
    return VoteTally(
        gto=gto,
        exploit=exploit,
        gto_percent=gto_percent,
        exploit_percent=exploit_percent,
        battles=battles,
    )


async def global_tally(store: DebateStore) -> VoteTally:
    """Recompute the global tally from storage. Not cached."""
    return tally_votes(await store.vote_counts())


async def submit_vote(store: DebateStore, debate_id: str, side: str) -> int:
    """Add one vote for `side` on a debate and return the new count.

    Read-then-write with no concurrency check; concurrent votes on the same
    row can lose an increment.

    Raises:
        InvalidVoteError: If side is not gto/exploit or debate_id is empty.
        DebateNotFoundError: If the debate does not exist.
        StorageError: If the store fails.
    """
    if not debate_id or side not in SIDES:
        raise InvalidVoteError("Invalid id or side")

    votes = await store.get_votes(debate_id)
    if votes is None:
        raise DebateNotFoundError(debate_id)

    current = votes[0] if side == "gto" else votes[1]
    new_value = current + 1
    await store.set_vote_count(debate_id, side, new_value)
    logger.info("Vote on %s: %s -> %d", debate_id, side, new_value)
    return new_value


def flavor_text(tally: VoteTally) -> str:
    """One-line mood of the world for the faction bar."""
    if tally.gto_percent > 60:
        return "The world is controlled by solvers."
    if tally.exploit_percent > 60:
        return "Chaos is spreading. GTO is dying."
    return "The world is in balance."
