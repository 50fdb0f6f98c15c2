"""Debate lifecycle: continue the active debate or retire it and start a new one."""

import logging
import random

from config.config_loader import ArenaConfig
from colosseum.models import Debate, TickResult
from colosseum.producer import DebateProducer
from colosseum.scenario import generate_random_scenario
from colosseum.storage.base import DebateStore, StorageError
from colosseum.votes import global_tally

logger = logging.getLogger(__name__)


def draw_max_turns(duration_mode: str, arena: ArenaConfig, rng: random.Random) -> int:
    """Draw a turn budget for a new debate from its duration tier."""
    low, high = arena.max_turns_ranges.get(duration_mode, arena.max_turns_ranges["Medium"])
    return rng.randint(low, high)


def legacy_max_turns(duration_mode: str, arena: ArenaConfig) -> int:
    """Deterministic budget for rows stored before budgets were drawn."""
    return arena.legacy_max_turns.get(duration_mode, arena.legacy_max_turns["Medium"])


def roll_dice(post_probability: int, rng: random.Random) -> bool:
    """True when an automatic tick should act (1-100 roll at or under the threshold)."""
    return rng.randint(1, 100) <= post_probability


class ArenaController:
    """Runs one lifecycle step per tick against the single active debate.

    States of the active debate:
        none or exhausted (turns >= max_turns) -> create a new debate
        active (turns < max_turns)             -> append continuation turns

    Storage errors propagate. Nothing is written until all generation for the
    tick has finished.
    """

    def __init__(
        self,
        store: DebateStore,
        producer: DebateProducer,
        arena: ArenaConfig,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._producer = producer
        self._arena = arena
        self._rng = rng if rng is not None else random.Random()

    async def auto_tick(self) -> TickResult:
        """Scheduled entry point: skips the tick unless the dice say post."""
        if not roll_dice(self._arena.post_probability, self._rng):
            logger.info("Skipped: not in the mood to post (dice roll)")
            return TickResult(mode="skipped")
        return await self.tick()

    def _budget(self, debate: Debate) -> tuple[str, int]:
        mode = debate.scenario.duration_mode if debate.scenario else "Medium"
        max_turns = debate.max_turns if debate.max_turns is not None else legacy_max_turns(mode, self._arena)
        return mode, max_turns

    def _has_room(self, debate: Debate) -> bool:
        return len(debate.transcript) < self._budget(debate)[1]

    async def _resolve_active(self) -> Debate | None:
        """The pointed-to debate, or a newer unfinished one when the pointer lags.

        A pointer naming a finished debate while a newer unfinished row exists
        means an earlier tick inserted that row but lost the pointer write.
        The newer row is adopted and the pointer repaired.
        """
        current = await self._store.active_debate()
        if current is None or self._has_room(current):
            return current

        latest = await self._store.latest_debate()
        if (
            latest is not None
            and latest.id != current.id
            and (latest.created_at or "") > (current.created_at or "")
            and self._has_room(latest)
        ):
            logger.warning("Active pointer names finished debate %s; adopting newer debate %s", current.id, latest.id)
            await self._store.set_active_debate_id(latest.id)
            return latest
        return current

    async def tick(self) -> TickResult:
        """Manual entry point: always runs one lifecycle step."""
        current = await self._resolve_active()

        if current is not None:
            mode, max_turns = self._budget(current)

            if len(current.transcript) < max_turns:
                return await self._continue(current, max_turns, mode)

            logger.info(
                "Debate %s finished (mode %s, reached %d turns). Starting a new one",
                current.id, mode, max_turns,
            )

        return await self._create()

    async def _continue(self, debate: Debate, max_turns: int, mode: str) -> TickResult:
        logger.info(
            "Continuing debate %s (mode %s, %d/%d turns)",
            debate.id, mode, len(debate.transcript), max_turns,
        )
        remaining = max_turns - len(debate.transcript)
        new_turns = await self._producer.continue_debate(
            debate.transcript,
            debate.scenario,
            max_new_turns=remaining,
        )

        if not new_turns:
            logger.warning("No continuation turns for debate %s, leaving it untouched", debate.id)
            return TickResult(
                mode="unchanged",
                debate_id=debate.id,
                title=debate.title,
                turns=len(debate.transcript),
                max_turns=max_turns,
                duration_mode=mode,
            )

        if len(new_turns) > remaining:
            logger.debug("Trimming %d continuation turns to budget %d", len(new_turns), remaining)
            new_turns = new_turns[:remaining]

        debate.transcript = debate.transcript + new_turns
        # Rows from before budgets were stored get theirs pinned on first append.
        debate.max_turns = max_turns
        await self._store.update_transcript(debate)

        return TickResult(
            mode="continued",
            debate_id=debate.id,
            title=debate.title,
            turns=len(debate.transcript),
            max_turns=max_turns,
            duration_mode=mode,
        )

    async def _create(self) -> TickResult:
        logger.info("Starting a new debate")
        bias = await global_tally(self._store)
        scenario = generate_random_scenario(self._rng)
        generated = await self._producer.create_debate(scenario, bias)
        if generated.fallback:
            logger.warning("Generator fell back to the error debate; storing it anyway")

        max_turns = draw_max_turns(scenario.duration_mode, self._arena, self._rng)
        transcript = generated.transcript[:max_turns]

        debate = await self._store.insert_debate(Debate(
            title=generated.title,
            scenario=scenario,
            transcript=transcript,
            max_turns=max_turns,
            votes_gto=1 if generated.winner == "gto" else 0,
            votes_exploit=1 if generated.winner == "exploit" else 0,
        ))
        if debate.id is not None:
            try:
                await self._store.set_active_debate_id(debate.id)
            except StorageError:
                logger.error("Could not point at new debate %s, removing it", debate.id)
                try:
                    await self._store.delete_debate(debate.id)
                except StorageError as exc:
                    # left for _resolve_active to adopt on the next tick
                    logger.error("Could not remove debate %s: %s", debate.id, exc)
                raise

        logger.info(
            "Created debate %s '%s' (mode %s, budget %d, winner %s)",
            debate.id, debate.title, scenario.duration_mode, max_turns, generated.winner,
        )
        return TickResult(
            mode="created",
            debate_id=debate.id,
            title=debate.title,
            turns=len(debate.transcript),
            max_turns=max_turns,
            duration_mode=scenario.duration_mode,
            winner=generated.winner,
        )
