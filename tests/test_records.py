"""Tests for colosseum/records.py."""

from colosseum.models import Debate, DebateTurn, Scenario
from colosseum.records import (
    debate_from_row,
    debate_to_api,
    debate_to_row,
    scenario_from_json,
    scenario_to_json,
)


def test_scenario_from_json_full():
    s = scenario_from_json({
        "gameType": "MTT",
        "players": 6,
        "stackDepth": 12,
        "potSize": 12,
        "potType": "Limped Pot / All-in situation",
        "heroHand": "A5s",
        "context": "Final Table (Huge Payjump)",
        "durationMode": "Long",
    })
    assert s == Scenario(
        game_type="MTT",
        players=6,
        stack_depth=12,
        pot_size=12,
        pot_type="Limped Pot / All-in situation",
        hero_hand="A5s",
        context="Final Table (Huge Payjump)",
        duration_mode="Long",
    )


def test_scenario_from_json_legacy_defaults():
    s = scenario_from_json({"gameType": "Cash", "stackDepth": 100})
    assert s.pot_size == 0
    assert s.pot_type == "Standard Pot"
    assert s.duration_mode == "Medium"
    assert s.players == 6


def test_scenario_from_json_lab_input():
    s = scenario_from_json({
        "gameType": "Cash",
        "stackDepth": "150bb",
        "heroHand": "AsKh",
        "board": "7d8d9s",
        "heroPosition": "BTN",
        "villainPosition": "BB",
    })
    assert s.stack_depth == 150
    assert s.board == "7d8d9s"
    assert s.hero_position == "BTN"
    assert s.villain_position == "BB"


def test_scenario_from_json_unknown_duration_falls_back():
    assert scenario_from_json({"gameType": "Cash", "durationMode": "Epic"}).duration_mode == "Medium"


def test_scenario_from_json_empty_is_none():
    assert scenario_from_json({}) is None
    assert scenario_from_json(None) is None
    assert scenario_from_json("Cash") is None


def test_scenario_to_json_skips_missing_optionals(sample_scenario):
    data = scenario_to_json(sample_scenario)
    assert data["gameType"] == "Cash"
    assert data["durationMode"] == "Medium"
    assert "board" not in data
    assert scenario_from_json(data) == sample_scenario


def test_debate_row_keeps_max_turns_in_blob(sample_scenario):
    debate = Debate(
        title="Flop c-bet",
        scenario=sample_scenario,
        transcript=[DebateTurn("gto", "Check.", "2026-01-01T00:00:00+00:00")],
        max_turns=33,
        votes_gto=1,
    )
    row = debate_to_row(debate)
    assert row["transcript_json"]["maxTurns"] == 33
    assert row["transcript_json"]["transcript"][0]["speaker"] == "gto"
    assert row["votes_gto"] == 1
    assert row["votes_exploit"] == 0
    assert "id" not in row


def test_debate_from_legacy_row():
    row = {
        "id": 17,
        "title": "Old debate",
        "scenario_json": None,
        "transcript_json": {
            "scenario": {"gameType": "Cash", "stackDepth": 100, "durationMode": "Short"},
            "transcript": [{"role": "GTO_Bot", "content": "Hi"}],
        },
        "votes_gto": None,
        "votes_exploit": 2,
        "created_at": "2025-06-01T00:00:00+00:00",
    }
    debate = debate_from_row(row)
    assert debate.id == "17"
    assert debate.max_turns is None
    assert debate.scenario.duration_mode == "Short"
    assert debate.transcript[0].speaker == "gto"
    assert debate.votes_gto == 0
    assert debate.votes_exploit == 2


def test_debate_from_row_tolerates_missing_blob():
    debate = debate_from_row({"id": "x", "title": "t", "transcript_json": None})
    assert debate.transcript == []
    assert debate.scenario is None


def test_debate_to_api_shape(sample_scenario):
    api = debate_to_api(Debate(title="t", scenario=sample_scenario, max_turns=10, id="d1"))
    assert set(api) == {
        "id", "title", "scenario", "transcript", "maxTurns", "votes_gto", "votes_exploit", "created_at",
    }
    assert api["maxTurns"] == 10
