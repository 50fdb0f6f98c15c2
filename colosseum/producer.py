"""Debate content producer: prompt building and structured-output parsing.

Wraps a single AIProvider. Generation failures never escape: a fresh debate
falls back to a fixed "System Error" payload and a continuation falls back to
no new turns.
"""

import logging
import random

from config.config_loader import ArenaConfig, PromptsConfig
from colosseum.models import SIDES, DebateTurn, GeneratedDebate, Scenario, VoteTally
from colosseum.providers.base import AIProvider
from colosseum.records import scenario_from_json
from colosseum.scenario import spr
from colosseum.transcript import (
    format_turns_for_prompt,
    load_model_json,
    normalize_winner,
    parse_turns,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "System Error"
FALLBACK_MESSAGE = "AI connection error. The dealer will reshuffle shortly."

_SPEAKERS_BY_MODE = {
    "classic": ["dealer", "gto", "exploit"],
    "with_noob": ["dealer", "gto", "exploit", "noob"],
}


def fallback_debate() -> GeneratedDebate:
    return GeneratedDebate(
        title=FALLBACK_TITLE,
        scenario=None,
        transcript=[DebateTurn(speaker="dealer", content=FALLBACK_MESSAGE, timestamp=utc_timestamp())],
        winner="gto",
        fallback=True,
    )


class DebateProducer:
    """Builds prompts for the generator and normalizes what comes back."""

    def __init__(
        self,
        provider: AIProvider,
        prompts: PromptsConfig,
        arena: ArenaConfig,
        rng: random.Random | None = None,
    ) -> None:
        self._provider = provider
        self._prompts = prompts
        self._arena = arena
        self._rng = rng if rng is not None else random.Random()

    @property
    def provider(self) -> AIProvider:
        return self._provider

    def speakers(self, include_dealer: bool = True) -> list[str]:
        speakers = _SPEAKERS_BY_MODE[self._arena.persona_mode]
        if include_dealer:
            return list(speakers)
        return [s for s in speakers if s != "dealer"]

    def _persona_block(self, speakers: list[str], hero_hand: str) -> str:
        blocks = []
        for speaker in speakers:
            text = self._prompts.personas.get(speaker, speaker)
            blocks.append(text.replace("{hero_hand}", hero_hand).strip())
        return "\n\n".join(blocks)

    def _scenario_fields(self, scenario: Scenario | None) -> dict[str, str]:
        if scenario is None:
            return {
                "game_type": "Unknown",
                "pot_type": "Standard Pot",
                "stack_depth": "Unknown",
                "pot_size": "0",
                "spr": "Unknown",
                "context": "Standard",
                "hero_hand": "Unknown",
            }
        return {
            "game_type": scenario.game_type,
            "pot_type": scenario.pot_type,
            "stack_depth": str(scenario.stack_depth),
            "pot_size": str(scenario.pot_size),
            "spr": spr(scenario),
            "context": scenario.context or "Standard",
            "hero_hand": scenario.hero_hand or "Unknown",
        }

    def build_create_prompt(self, scenario: Scenario | None, bias: VoteTally | None = None) -> str:
        gto_percentage = bias.gto_percent if bias else 50
        exploit_percentage = bias.exploit_percent if bias else 50
        duration_mode = scenario.duration_mode if scenario else "Medium"
        fields = self._scenario_fields(scenario)
        speakers = self.speakers()
        return self._prompts.create.format(
            personas=self._persona_block(speakers, scenario.hero_hand if scenario and scenario.hero_hand else "Random"),
            speakers=", ".join(speakers),
            gto_percentage=gto_percentage,
            exploit_percentage=exploit_percentage,
            duration_mode=duration_mode,
            duration_instruction=self._prompts.duration_instructions.get(duration_mode, ""),
            **fields,
        )

    def build_continue_prompt(
        self,
        recent: list[DebateTurn],
        scenario: Scenario | None,
        min_turns: int,
        max_turns: int,
    ) -> str:
        fields = self._scenario_fields(scenario)
        speakers = self.speakers(include_dealer=False)
        return self._prompts.continue_.format(
            personas=self._persona_block(speakers, fields["hero_hand"]),
            speakers=", ".join(speakers),
            recent_turns=format_turns_for_prompt(recent),
            min_turns=min_turns,
            max_turns=max_turns,
            **fields,
        )

    async def create_debate(
        self,
        scenario: Scenario | None,
        bias: VoteTally | None = None,
    ) -> GeneratedDebate:
        """Generate a fresh debate for the scenario.

        Returns the fallback debate on any generation or parsing failure.
        """
        prompt = self.build_create_prompt(scenario, bias)
        try:
            response = await self._provider.generate(prompt, purpose="create")
            data = load_model_json(response.content)
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
            raw_transcript = data.get("transcript")
            if not isinstance(raw_transcript, list):
                raise ValueError("Missing transcript list")

            stamp = utc_timestamp()
            transcript = parse_turns(raw_transcript, timestamp=stamp)
            if not transcript:
                raise ValueError("Transcript is empty")

            winner = normalize_winner(data.get("winner"))
            if winner is None:
                winner = self._rng.choice(SIDES)
                logger.debug("No competing winner in output, drew %s", winner)

            return GeneratedDebate(
                title=str(data.get("title") or "Untitled Debate"),
                scenario=scenario if scenario is not None else scenario_from_json(data.get("scenario")),
                transcript=transcript,
                winner=winner,
            )
        except Exception as exc:
            logger.warning("Debate generation failed via %s: %s", self._provider.label(), exc)
            return fallback_debate()

    async def continue_debate(
        self,
        transcript: list[DebateTurn],
        scenario: Scenario | None,
        max_new_turns: int | None = None,
    ) -> list[DebateTurn]:
        """Generate follow-up turns for an existing transcript.

        Only the most recent turns are sent as context. Returns an empty list
        on failure; callers treat that as "leave the debate alone".
        """
        max_turns = self._arena.continue_max_turns
        if max_new_turns is not None:
            max_turns = min(max_turns, max_new_turns)
        if max_turns <= 0:
            return []
        min_turns = min(self._arena.continue_min_turns, max_turns)

        recent = transcript[-self._arena.continue_window:] if self._arena.continue_window > 0 else []
        prompt = self.build_continue_prompt(recent, scenario, min_turns, max_turns)
        try:
            response = await self._provider.generate(prompt, purpose="continue")
            data = load_model_json(response.content)
            if isinstance(data, dict):
                data = data.get("transcript")
            if not isinstance(data, list):
                raise ValueError("Expected a list of turns")
            turns = parse_turns(data, timestamp=utc_timestamp())
        except Exception as exc:
            logger.warning("Debate continuation failed via %s: %s", self._provider.label(), exc)
            return []

        allowed = self.speakers(include_dealer=False)
        kept = [t for t in turns if t.speaker in allowed]
        if len(kept) < len(turns):
            logger.debug("Dropped %d continuation turns from speakers outside %s", len(turns) - len(kept), allowed)
        return kept
