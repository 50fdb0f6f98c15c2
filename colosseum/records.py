"""Conversion between stored JSON rows and the typed dataclasses.

Stored documents have grown fields over time (potSize, durationMode and
maxTurns were all added after the first debates went live), so reads fill
gaps with defaults instead of failing.
"""

import logging
import re

from colosseum.models import DURATION_MODES, Debate, GeneratedDebate, Scenario
from colosseum.transcript import parse_turns, turn_to_dict

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

# camelCase JSON key -> Scenario attribute
_SCENARIO_KEYS = {
    "gameType": "game_type",
    "players": "players",
    "stackDepth": "stack_depth",
    "potSize": "pot_size",
    "potType": "pot_type",
    "heroHand": "hero_hand",
    "context": "context",
    "durationMode": "duration_mode",
    "board": "board",
    "heroPosition": "hero_position",
    "villainPosition": "villain_position",
}


def _as_number(value: object, default: float = 0) -> float:
    """Accept 100, 100.0 or "100bb"."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match:
            number = float(match.group())
            return int(number) if number.is_integer() else number
    return default


def scenario_from_json(raw: object) -> Scenario | None:
    """Build a Scenario from a stored or user-supplied dict.

    Returns None for anything that is not a non-empty dict (the fallback debate
    stores an empty scenario).
    """
    if not isinstance(raw, dict) or not raw:
        return None

    duration_mode = raw.get("durationMode") or "Medium"
    if duration_mode not in DURATION_MODES:
        logger.debug("Unknown durationMode %r, using Medium", duration_mode)
        duration_mode = "Medium"

    def _optional(key: str) -> str | None:
        value = raw.get(key)
        return str(value) if value not in (None, "") else None

    return Scenario(
        game_type=str(raw.get("gameType") or "Cash"),
        players=int(_as_number(raw.get("players"), 6)),
        stack_depth=_as_number(raw.get("stackDepth"), 100),
        pot_size=_as_number(raw.get("potSize"), 0),
        pot_type=str(raw.get("potType") or "Standard Pot"),
        hero_hand=str(raw.get("heroHand") or ""),
        context=str(raw.get("context") or "Standard"),
        duration_mode=duration_mode,
        board=_optional("board"),
        hero_position=_optional("heroPosition"),
        villain_position=_optional("villainPosition"),
    )


def scenario_to_json(scenario: Scenario | None) -> dict:
    if scenario is None:
        return {}
    data = {}
    for key, attr in _SCENARIO_KEYS.items():
        value = getattr(scenario, attr)
        if value is not None:
            data[key] = value
    return data


def _transcript_blob(raw_row: dict) -> dict:
    blob = raw_row.get("transcript_json")
    return blob if isinstance(blob, dict) else {}


def debate_from_row(row: dict) -> Debate:
    """Build a Debate from an arena_debates row."""
    blob = _transcript_blob(row)
    raw_transcript = blob.get("transcript")
    if not isinstance(raw_transcript, list):
        raw_transcript = []

    # scenario_json is authoritative; very old rows only have the blob copy
    scenario = scenario_from_json(row.get("scenario_json")) or scenario_from_json(
        blob.get("scenario")
    )

    max_turns = blob.get("maxTurns")
    return Debate(
        id=str(row["id"]) if row.get("id") is not None else None,
        title=str(row.get("title") or blob.get("title") or ""),
        scenario=scenario,
        transcript=parse_turns(raw_transcript),
        max_turns=int(max_turns) if isinstance(max_turns, (int, float)) else None,
        votes_gto=int(row.get("votes_gto") or 0),
        votes_exploit=int(row.get("votes_exploit") or 0),
        created_at=row.get("created_at"),
    )


def transcript_blob(debate: Debate) -> dict:
    blob = {
        "title": debate.title,
        "scenario": scenario_to_json(debate.scenario),
        "transcript": [turn_to_dict(t) for t in debate.transcript],
    }
    if debate.max_turns is not None:
        blob["maxTurns"] = debate.max_turns
    return blob


def debate_to_row(debate: Debate) -> dict:
    """Row payload for inserting a debate. id and created_at are store-assigned."""
    return {
        "title": debate.title,
        "scenario_json": scenario_to_json(debate.scenario),
        "transcript_json": transcript_blob(debate),
        "votes_gto": debate.votes_gto,
        "votes_exploit": debate.votes_exploit,
    }


def debate_to_api(debate: Debate) -> dict:
    """Public JSON shape for the HTTP API."""
    return {
        "id": debate.id,
        "title": debate.title,
        "scenario": scenario_to_json(debate.scenario),
        "transcript": [turn_to_dict(t) for t in debate.transcript],
        "maxTurns": debate.max_turns,
        "votes_gto": debate.votes_gto,
        "votes_exploit": debate.votes_exploit,
        "created_at": debate.created_at,
    }


def generated_to_json(generated: GeneratedDebate) -> dict:
    return {
        "title": generated.title,
        "scenario": scenario_to_json(generated.scenario),
        "transcript": [turn_to_dict(t) for t in generated.transcript],
        "winner": generated.winner,
    }
