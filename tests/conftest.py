"""Shared pytest fixtures."""

import json
import random
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from config.config_loader import (
    AppConfig,
    ArenaConfig,
    ModelConfig,
    PromptsConfig,
    ServerConfig,
    StorageConfig,
)
from colosseum.models import Debate, DebateTurn, GeneratedDebate, LabAnalysis, ModelResponse, Scenario
from colosseum.producer import DebateProducer
from colosseum.providers.base import AIProvider
from colosseum.records import debate_from_row, debate_to_row, transcript_blob
from colosseum.services import Services, assemble_services
from colosseum.storage.base import DebateStore, StorageError


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        create=(
            "Shares {gto_percentage}/{exploit_percentage}\n{personas}\nSpeakers: {speakers}\n"
            "{game_type} {pot_type} {stack_depth} {pot_size} SPR={spr} {context} {hero_hand}\n"
            "[{duration_mode}] {duration_instruction}"
        ),
        continue_=(
            "{personas}\nSpeakers: {speakers}\n{game_type} {pot_type} {stack_depth} {pot_size} "
            "SPR={spr} {context} {hero_hand}\nRecent:\n{recent_turns}\nWrite {min_turns}-{max_turns}"
        ),
        personas={
            "dealer": "DEALER persona, hand {hero_hand}",
            "gto": "GTO persona",
            "exploit": "EXPLOIT persona",
            "noob": "NOOB persona",
        },
        duration_instructions={
            "Short": "finish fast",
            "Medium": "stop when done",
            "Long": "argue forever",
        },
    )


@pytest.fixture
def sample_arena_config() -> ArenaConfig:
    return ArenaConfig()


@pytest.fixture
def sample_app_config(sample_prompts_config: PromptsConfig, sample_arena_config: ArenaConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="gemini",
        sdk="google-genai",
        model="gemini-2.5-flash",
        api_key_env="GEMINI_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
        json_output=True,
    )
    return AppConfig(
        arena=sample_arena_config,
        storage=StorageConfig(),
        server=ServerConfig(),
        generator="gemini",
        models={"gemini": model_cfg},
        prompts=sample_prompts_config,
        available_providers={"gemini"},
    )


@pytest.fixture
def sample_scenario() -> Scenario:
    return Scenario(
        game_type="Cash",
        players=6,
        stack_depth=100,
        pot_size=6,
        pot_type="Single Raised Pot (SRP)",
        hero_hand="AKs",
        context="Standard Reg vs Reg",
        duration_mode="Medium",
    )


def make_turns(count: int, start: int = 0) -> list[DebateTurn]:
    speakers = ["gto", "exploit"]
    return [
        DebateTurn(speaker=speakers[i % 2], content=f"Turn {i}", timestamp="2026-01-01T00:00:00+00:00")
        for i in range(start, start + count)
    ]


def debate_json(
    title: str = "AKs in a 3-bet pot",
    winner: str | None = "gto",
    turns: list[dict] | None = None,
) -> str:
    payload: dict = {
        "title": title,
        "scenario": {},
        "transcript": turns if turns is not None else [
            {"speaker": "Dealer", "content": "**[Hero Hand]: AKs**"},
            {"speaker": "GTO_Bot", "content": "Mix checks at 40%."},
            {"speaker": "Exploit_Bot", "content": "He never folds. Bet."},
        ],
    }
    if winner is not None:
        payload["winner"] = winner
    return json.dumps(payload)


def continuation_json(count: int = 3) -> str:
    speakers = ["gto", "exploit"]
    return json.dumps({
        "transcript": [{"speaker": speakers[i % 2], "content": f"New point {i}"} for i in range(count)]
    })


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "{}") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                purpose="create",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, purpose: str = "generate") -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(
            provider=self._name,
            model="mock-model",
            purpose=purpose,
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


def respond_with(provider: MockProvider, *contents: str) -> None:
    """Queue one ModelResponse per content string on a MockProvider."""
    provider.generate = AsyncMock(side_effect=[
        ModelResponse(provider.name(), "mock-model", "test", c, 0.1, 10) for c in contents
    ])


class MemoryStore(DebateStore):
    """In-memory DebateStore that round-trips rows through the record codec."""

    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.lab_rows: list[dict] = []
        self.state: dict[str, str] = {}
        self.fail_writes = False
        self.writes = 0
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._next_id = 1

    def _tick_clock(self) -> str:
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def _check_write(self) -> None:
        if self.fail_writes:
            raise StorageError("simulated write failure")
        self.writes += 1

    def add(self, debate: Debate) -> Debate:
        """Seed a row directly, bypassing write accounting."""
        row = debate_to_row(debate)
        row["id"] = f"debate-{self._next_id}"
        row["created_at"] = self._tick_clock()
        self._next_id += 1
        self.rows[row["id"]] = row
        return debate_from_row(row)

    async def latest_debate(self) -> Debate | None:
        if not self.rows:
            return None
        row = max(self.rows.values(), key=lambda r: r["created_at"])
        return debate_from_row(row)

    async def get_debate(self, debate_id: str) -> Debate | None:
        row = self.rows.get(debate_id)
        return debate_from_row(row) if row else None

    async def list_debates(self, limit: int) -> list[Debate]:
        rows = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        return [debate_from_row(r) for r in rows[:limit]]

    async def insert_debate(self, debate: Debate) -> Debate:
        self._check_write()
        return self.add(debate)

    async def update_transcript(self, debate: Debate) -> None:
        self._check_write()
        self.rows[debate.id]["transcript_json"] = transcript_blob(debate)

    async def delete_debate(self, debate_id: str) -> None:
        self._check_write()
        self.rows.pop(debate_id, None)

    async def vote_counts(self) -> list[tuple[int, int]]:
        return [(r["votes_gto"], r["votes_exploit"]) for r in self.rows.values()]

    async def get_votes(self, debate_id: str) -> tuple[int, int] | None:
        row = self.rows.get(debate_id)
        return (row["votes_gto"], row["votes_exploit"]) if row else None

    async def set_vote_count(self, debate_id: str, side: str, value: int) -> None:
        self._check_write()
        self.rows[debate_id][f"votes_{side}"] = value

    async def get_active_debate_id(self) -> str | None:
        return self.state.get("active_debate")

    async def set_active_debate_id(self, debate_id: str) -> None:
        self._check_write()
        self.state["active_debate"] = debate_id

    async def insert_lab_analysis(self, input_scenario: dict, debate: GeneratedDebate) -> LabAnalysis:
        self._check_write()
        row = {"id": f"lab-{len(self.lab_rows) + 1}", "input_scenario": input_scenario,
               "created_at": self._tick_clock()}
        self.lab_rows.append(row)
        return LabAnalysis(id=row["id"], created_at=row["created_at"], debate=debate)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider("gemini", debate_json())


@pytest.fixture
def producer(mock_provider, sample_prompts_config, sample_arena_config) -> DebateProducer:
    return DebateProducer(mock_provider, sample_prompts_config, sample_arena_config, rng=random.Random(7))


@pytest.fixture
def services(sample_app_config, memory_store, producer) -> Services:
    return assemble_services(sample_app_config, memory_store, producer, rng=random.Random(11))


class FakeQuery:
    """Stand-in for a PostgREST query builder: records calls, execute() returns rows or raises."""

    def __init__(self, data: list[dict] | None = None, error: Exception | None = None) -> None:
        self.data = data or []
        self.error = error
        self.calls: list[tuple] = []

    def __getattr__(self, name: str):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    async def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)


class FakeClient:
    def __init__(self, **tables: FakeQuery) -> None:
        self.tables = tables

    def table(self, name: str) -> FakeQuery:
        return self.tables.setdefault(name, FakeQuery())
