"""One-off debates from a caller-supplied scenario, stored apart from the arena."""

import logging

from colosseum.models import LabAnalysis
from colosseum.producer import DebateProducer
from colosseum.records import scenario_from_json
from colosseum.storage.base import DebateStore

logger = logging.getLogger(__name__)


async def run_lab_analysis(store: DebateStore, producer: DebateProducer, raw_scenario: dict) -> LabAnalysis:
    """Generate a debate for `raw_scenario` and persist it as a lab analysis.

    The input is stored exactly as supplied. It never touches the arena
    lifecycle or the active debate pointer.
    """
    scenario = scenario_from_json(raw_scenario)
    debate = await producer.create_debate(scenario)
    analysis = await store.insert_lab_analysis(raw_scenario, debate)
    logger.info("Stored lab analysis %s ('%s')", analysis.id, debate.title)
    return analysis
