"""Speaker normalization and parsing of model-produced transcripts.

Every place that turns free-form model output (or an old stored row) into
DebateTurn objects goes through here.
"""

import json
import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone

from colosseum.models import SIDES, DebateTurn

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

# Checked in order; first prefix match wins.
_SPEAKER_PREFIXES = (
    ("gto", "gto"),
    ("exploit", "exploit"),
    ("noob", "noob"),
    ("dealer", "dealer"),
)


def normalize_speaker(raw: object) -> str:
    """Map a raw speaker label onto the closed speaker set.

    Matching is case-insensitive on the prefix, so "GTO_Bot" and
    "Exploit_Bot" resolve to "gto" and "exploit". Anything unrecognized
    becomes "dealer".
    """
    if not isinstance(raw, str):
        return "dealer"
    label = raw.strip().lower()
    for prefix, speaker in _SPEAKER_PREFIXES:
        if label.startswith(prefix):
            return speaker
    return "dealer"


def normalize_winner(raw: object) -> str | None:
    """Return "gto"/"exploit" for a competing winner, else None."""
    if raw is None:
        return None
    speaker = normalize_speaker(raw)
    return speaker if speaker in SIDES else None


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def turn_from_dict(raw: dict, timestamp: str | None = None) -> DebateTurn:
    """Build a DebateTurn from a stored or generated dict.

    Older rows carry "role" instead of "speaker". An explicit timestamp
    argument overrides whatever the dict holds.
    """
    speaker = raw.get("speaker", raw.get("role"))
    content = raw.get("content", "")
    return DebateTurn(
        speaker=normalize_speaker(speaker),
        content=content if isinstance(content, str) else str(content),
        timestamp=timestamp if timestamp is not None else raw.get("timestamp"),
    )


def turn_to_dict(turn: DebateTurn) -> dict:
    data = {"speaker": turn.speaker, "content": turn.content}
    if turn.timestamp is not None:
        data["timestamp"] = turn.timestamp
    return data


def parse_turns(raw_turns: Iterable, timestamp: str | None = None) -> list[DebateTurn]:
    """Normalize a sequence of raw turns, skipping entries that are not dicts."""
    turns: list[DebateTurn] = []
    for raw in raw_turns:
        if not isinstance(raw, dict):
            logger.debug("Dropping non-object turn: %r", raw)
            continue
        turns.append(turn_from_dict(raw, timestamp=timestamp))
    return turns


def clean_json_text(text: str) -> str:
    """Strip markdown code fences that models wrap around JSON."""
    return _FENCE_RE.sub("", text).strip()


def load_model_json(text: str) -> object:
    """Parse model output as JSON after removing code fences.

    Raises:
        ValueError: If the text is not valid JSON.
    """
    cleaned = clean_json_text(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Model output is not valid JSON: {exc}") from exc


def format_turns_for_prompt(turns: Iterable[DebateTurn]) -> str:
    return "\n".join(f"[{t.speaker}] {t.content}" for t in turns)
