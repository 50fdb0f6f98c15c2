"""Pure dataclasses for the Colosseum debate pipeline. No logic, no deps."""

from dataclasses import dataclass, field

SPEAKERS = ("dealer", "gto", "exploit", "noob")
SIDES = ("gto", "exploit")
DURATION_MODES = ("Short", "Medium", "Long")


@dataclass(frozen=True)
class Scenario:
    game_type: str             # "Cash" or "MTT"
    stack_depth: float         # big blinds
    pot_size: float = 0        # big blinds
    pot_type: str = "Standard Pot"
    hero_hand: str = ""        # e.g. "AKs", "TT", "AsKh"
    context: str = "Standard"
    duration_mode: str = "Medium"
    players: int = 6
    board: str | None = None
    hero_position: str | None = None
    villain_position: str | None = None


@dataclass
class DebateTurn:
    speaker: str               # one of SPEAKERS
    content: str
    timestamp: str | None = None


@dataclass
class ModelResponse:
    provider: str              # "gemini", "openai", "claude"
    model: str                 # actual model string used
    purpose: str               # "create", "continue", "ping"
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class GeneratedDebate:
    title: str
    scenario: Scenario | None
    transcript: list[DebateTurn]
    winner: str                # "gto" or "exploit"
    fallback: bool = False     # True when generation failed


@dataclass
class Debate:
    title: str
    scenario: Scenario | None
    transcript: list[DebateTurn] = field(default_factory=list)
    max_turns: int | None = None   # None on rows written before budgets existed
    votes_gto: int = 0
    votes_exploit: int = 0
    id: str | None = None
    created_at: str | None = None


@dataclass
class VoteTally:
    gto: int
    exploit: int
    gto_percent: int
    exploit_percent: int
    battles: int = 0


@dataclass
class LabAnalysis:
    id: str | None
    created_at: str | None
    debate: GeneratedDebate


@dataclass
class TickResult:
    mode: str                  # "created", "continued", "unchanged", "skipped"
    debate_id: str | None = None
    title: str | None = None
    turns: int = 0
    max_turns: int | None = None
    duration_mode: str | None = None
    winner: str | None = None
