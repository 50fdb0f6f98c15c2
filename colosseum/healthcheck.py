"""Provider health checks: ping each model that has an API key."""

import asyncio
import logging
from dataclasses import dataclass

from colosseum.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


@dataclass
class HealthResult:
    provider: str
    model: str
    ok: bool
    latency_sec: float | None = None
    error: str = ""


async def _check_one(provider: AIProvider) -> HealthResult:
    try:
        response = await asyncio.wait_for(
            provider.generate(_PING_PROMPT, purpose="ping"),
            timeout=_TIMEOUT_SEC,
        )
    except TimeoutError:
        logger.debug("Health check timed out for %s", provider.name())
        return HealthResult(provider.name(), provider.model_string(), ok=False,
                            error=f"No answer within {_TIMEOUT_SEC:g}s")
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", provider.name(), exc)
        return HealthResult(provider.name(), provider.model_string(), ok=False, error=str(exc) or type(exc).__name__)
    return HealthResult(provider.name(), provider.model_string(), ok=True, latency_sec=response.latency_sec)


async def run_health_checks(providers: dict[str, AIProvider]) -> dict[str, HealthResult]:
    """Ping all providers in parallel. Keys match the input dict."""
    names = list(providers)
    results = await asyncio.gather(*(_check_one(providers[n]) for n in names))
    return dict(zip(names, results))
