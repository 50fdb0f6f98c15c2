"""Wiring: config -> provider, store, producer and controller."""

import logging
import random
from dataclasses import dataclass

from config.config_loader import AppConfig
from colosseum.arena import ArenaController
from colosseum.producer import DebateProducer
from colosseum.providers import build_provider
from colosseum.storage.base import DebateStore
from colosseum.storage.supabase_store import SupabaseDebateStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: AppConfig
    store: DebateStore
    producer: DebateProducer
    controller: ArenaController


def assemble_services(
    config: AppConfig,
    store: DebateStore,
    producer: DebateProducer,
    rng: random.Random | None = None,
) -> Services:
    controller = ArenaController(store, producer, config.arena, rng=rng)
    return Services(config=config, store=store, producer=producer, controller=controller)


async def build_services(config: AppConfig) -> Services:
    """Connect to Supabase and instantiate the configured generator.

    Raises:
        StorageError: If Supabase credentials are missing.
        ProviderError: If the generator cannot be instantiated.
    """
    store = await SupabaseDebateStore.connect(config.storage)
    provider = build_provider(config)
    logger.info("Generator: %s (persona mode %s)", provider.label(), config.arena.persona_mode)
    producer = DebateProducer(provider, config.prompts, config.arena)
    return assemble_services(config, store, producer)
