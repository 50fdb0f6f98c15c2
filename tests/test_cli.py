"""Tests for the click commands in colosseum/cli.py, with storage and providers faked."""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

import colosseum.cli as cli
from colosseum.models import Debate, Scenario
from tests.conftest import MockProvider, continuation_json, make_turns, respond_with


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_backends(monkeypatch, services, memory_store):
    async def _build_services(config):
        return services

    async def _connect_store(config):
        return memory_store

    monkeypatch.setattr(cli, "build_services", _build_services)
    monkeypatch.setattr(cli, "_connect_store", _connect_store)
    return memory_store


def _seed(store, title: str, **votes) -> Debate:
    scenario = Scenario(game_type="Cash", stack_depth=100, pot_size=6, hero_hand="AKs", duration_mode="Short")
    return store.add(Debate(title=title, scenario=scenario, transcript=make_turns(4), max_turns=12, **votes))


def test_tick_creates_debate(runner, fake_backends):
    result = runner.invoke(cli.main, ["tick"])
    assert result.exit_code == 0, result.output
    assert "CREATED" in result.output
    assert len(fake_backends.rows) == 1


def test_tick_continues_active_debate(runner, fake_backends, mock_provider):
    debate = _seed(fake_backends, "live")
    respond_with(mock_provider, continuation_json(2))

    result = runner.invoke(cli.main, ["tick"])

    assert result.exit_code == 0, result.output
    assert "CONTINUED" in result.output
    assert len(fake_backends.rows[debate.id]["transcript_json"]["transcript"]) == 6


def test_tick_storage_failure_exits_1(runner, fake_backends):
    fake_backends.fail_writes = True
    result = runner.invoke(cli.main, ["tick"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_list_shows_titles(runner, fake_backends):
    _seed(fake_backends, "alpha")
    _seed(fake_backends, "bravo")
    result = runner.invoke(cli.main, ["list"])
    assert result.exit_code == 0, result.output
    assert "alpha" in result.output
    assert "bravo" in result.output
    assert result.output.index("bravo") < result.output.index("alpha")


def test_show_prints_debate(runner, fake_backends):
    debate = _seed(fake_backends, "showme")
    result = runner.invoke(cli.main, ["show", debate.id])
    assert result.exit_code == 0, result.output
    assert "showme" in result.output
    assert "Turn 3" in result.output


def test_show_unknown_id_exits_1(runner, fake_backends):
    result = runner.invoke(cli.main, ["show", "missing"])
    assert result.exit_code == 1
    assert "missing" in result.output


def test_export_writes_markdown(runner, fake_backends, tmp_path: Path):
    debate = _seed(fake_backends, "Export me")
    result = runner.invoke(cli.main, ["export", debate.id, "--output", str(tmp_path)])
    assert result.exit_code == 0, result.output
    files = list(tmp_path.glob("*.md"))
    assert len(files) == 1
    assert files[0].read_text(encoding="utf-8").startswith("# AI Colosseum: Export me")


def test_vote_increments(runner, fake_backends):
    debate = _seed(fake_backends, "v", votes_gto=2)
    result = runner.invoke(cli.main, ["vote", debate.id, "GTO"])
    assert result.exit_code == 0, result.output
    assert "gto now has 3 vote(s)" in result.output
    assert fake_backends.rows[debate.id]["votes_gto"] == 3


def test_vote_rejects_unknown_side(runner, fake_backends):
    debate = _seed(fake_backends, "v")
    result = runner.invoke(cli.main, ["vote", debate.id, "draw"])
    assert result.exit_code == 2
    assert fake_backends.writes == 0


def test_vote_unknown_debate_exits_1(runner, fake_backends):
    result = runner.invoke(cli.main, ["vote", "missing", "exploit"])
    assert result.exit_code == 1


def test_faction_prints_shares(runner, fake_backends):
    _seed(fake_backends, "a", votes_gto=3, votes_exploit=1)
    _seed(fake_backends, "b")
    _seed(fake_backends, "c", votes_gto=2, votes_exploit=2)
    result = runner.invoke(cli.main, ["faction"])
    assert result.exit_code == 0, result.output
    assert "63%" in result.output
    assert "Total Battles: 3" in result.output


def test_check_models_without_keys_exits_1(runner, monkeypatch):
    monkeypatch.setattr(cli, "build_all_providers", lambda config: {})
    result = runner.invoke(cli.main, ["check-models"])
    assert result.exit_code == 1
    assert "No providers available" in result.output


def test_check_models_reports_ok(runner, monkeypatch):
    monkeypatch.setattr(cli, "build_all_providers", lambda config: {"gemini": MockProvider("gemini")})
    result = runner.invoke(cli.main, ["check-models"])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output
    assert "gemini" in result.output


def test_bad_config_exits_1(runner, tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump({"arena": {"persona_mode": "chaos"}}), encoding="utf-8")
    result = runner.invoke(cli.main, ["--config", str(path), "list"])
    assert result.exit_code == 1
    assert "Config error" in result.output
