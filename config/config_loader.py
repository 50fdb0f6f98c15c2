"""Load settings.yaml into typed dataclasses. Checks API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

PERSONA_MODES = ("classic", "with_noob")


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    json_output: bool = False


@dataclass
class PromptsConfig:
    create: str
    continue_: str
    personas: dict[str, str] = field(default_factory=dict)
    duration_instructions: dict[str, str] = field(default_factory=dict)


@dataclass
class ArenaConfig:
    post_probability: int = 80             # percent of automatic ticks that act
    persona_mode: str = "classic"          # "classic" or "with_noob"
    continue_window: int = 6               # prior turns sent as context
    continue_min_turns: int = 3
    continue_max_turns: int = 5
    list_limit: int = 50
    max_turns_ranges: dict[str, tuple[int, int]] = field(default_factory=lambda: {
        "Short": (8, 15),
        "Medium": (30, 50),
        "Long": (80, 120),
    })
    legacy_max_turns: dict[str, int] = field(default_factory=lambda: {
        "Short": 15,
        "Medium": 50,
        "Long": 120,
    })


@dataclass
class StorageConfig:
    url_env: str = "SUPABASE_URL"
    key_env: str = "SUPABASE_KEY"
    debates_table: str = "arena_debates"
    lab_table: str = "lab_analyses"
    state_table: str = "arena_state"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    cron_secret_env: str = "CRON_SECRET"
    enforce_cron_secret: bool = False


@dataclass
class AppConfig:
    arena: ArenaConfig
    storage: StorageConfig
    server: ServerConfig
    generator: str
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    export_dir: Path = Path("./exports")
    available_providers: set[str] = field(default_factory=set)


def _load_arena(raw: dict) -> ArenaConfig:
    arena = ArenaConfig(
        post_probability=int(raw.get("post_probability", 80)),
        persona_mode=str(raw.get("persona_mode", "classic")),
        continue_window=int(raw.get("continue_window", 6)),
        continue_min_turns=int(raw.get("continue_min_turns", 3)),
        continue_max_turns=int(raw.get("continue_max_turns", 5)),
        list_limit=int(raw.get("list_limit", 50)),
    )
    if arena.persona_mode not in PERSONA_MODES:
        raise ValueError(
            f"Unknown persona_mode {arena.persona_mode!r}, expected one of {PERSONA_MODES}"
        )
    if "max_turns_ranges" in raw:
        arena.max_turns_ranges = {
            mode: (int(bounds[0]), int(bounds[1]))
            for mode, bounds in raw["max_turns_ranges"].items()
        }
    if "legacy_max_turns" in raw:
        arena.legacy_max_turns = {mode: int(v) for mode, v in raw["legacy_max_turns"].items()}
    return arena


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check whether the
    configured generator ended up in available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    arena = _load_arena(raw.get("arena", {}))

    storage_raw = raw.get("storage", {})
    storage = StorageConfig(**{k: str(v) for k, v in storage_raw.items()})

    server_raw = raw.get("server", {})
    server = ServerConfig(
        host=str(server_raw.get("host", "127.0.0.1")),
        port=int(server_raw.get("port", 8000)),
        cron_secret_env=str(server_raw.get("cron_secret_env", "CRON_SECRET")),
        enforce_cron_secret=bool(server_raw.get("enforce_cron_secret", False)),
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        create=prompts_raw["create"],
        continue_=prompts_raw["continue"],
        personas={k: str(v) for k, v in raw.get("personas", {}).items()},
        duration_instructions={
            k: str(v) for k, v in raw.get("duration_instructions", {}).items()
        },
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            json_output=bool(model_raw.get("json_output", False)),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    generator = str(raw.get("generator", "gemini"))
    if generator not in models:
        raise ValueError(f"Generator {generator!r} has no entry under models")

    return AppConfig(
        arena=arena,
        storage=storage,
        server=server,
        generator=generator,
        models=models,
        prompts=prompts,
        export_dir=Path(raw.get("export_dir", "./exports")),
        available_providers=available_providers,
    )
