"""FastAPI application: debate listing, voting, lifecycle triggers and the lab."""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.config_loader import AppConfig, load_config
from colosseum.lab import run_lab_analysis
from colosseum.models import TickResult
from colosseum.records import debate_to_api
from colosseum.services import Services, build_services
from colosseum.storage.base import StorageError
from colosseum.transcript import turn_to_dict
from colosseum.votes import DebateNotFoundError, InvalidVoteError, flavor_text, global_tally, submit_vote

logger = logging.getLogger(__name__)

_NO_STORE = {"Cache-Control": "no-store, no-cache, must-revalidate"}


class VoteRequest(BaseModel):
    side: str | None = None


class LabRequest(BaseModel):
    scenario: dict | None = None


def _tick_payload(result: TickResult) -> dict:
    if result.mode == "skipped":
        return {"skipped": True, "message": "AI is sleeping or busy."}
    return {
        "success": True,
        "mode": result.mode,
        "id": result.debate_id,
        "title": result.title,
        "turns": result.turns,
        "maxTurns": result.max_turns,
        "durationMode": result.duration_mode,
        "winner": result.winner,
    }


def create_app(config: AppConfig | None = None, services: Services | None = None) -> FastAPI:
    """Build the app. Without `services`, Supabase and the generator are
    connected on startup from `config` (or settings.yaml)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.services is None:
            app.state.services = await build_services(config or load_config())
        yield

    app = FastAPI(title="Poker AI Colosseum", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    def _services(request: Request) -> Services:
        return request.app.state.services

    @app.exception_handler(InvalidVoteError)
    async def _invalid_vote(request: Request, exc: InvalidVoteError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(DebateNotFoundError)
    async def _not_found(request: Request, exc: DebateNotFoundError) -> JSONResponse:
        return JSONResponse({"error": "Debate not found"}, status_code=404)

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=500)

    @app.get("/api/arena-debates")
    async def list_debates(request: Request) -> JSONResponse:
        svc = _services(request)
        debates = await svc.store.list_debates(svc.config.arena.list_limit)
        return JSONResponse({"debates": [debate_to_api(d) for d in debates]}, headers=_NO_STORE)

    @app.post("/api/arena-debates/{debate_id}/vote")
    async def vote(debate_id: str, request: Request, body: VoteRequest | None = None) -> dict:
        side = body.side if body is not None and body.side else ""
        new_value = await submit_vote(_services(request).store, debate_id, side)
        return {"success": True, f"votes_{side}": new_value}

    @app.get("/api/generate-arena-debate")
    async def auto_generate(
        request: Request,
        authorization: str | None = Header(default=None),
    ) -> JSONResponse:
        svc = _services(request)
        secret = os.environ.get(svc.config.server.cron_secret_env, "").strip()
        if secret and authorization != f"Bearer {secret}":
            if svc.config.server.enforce_cron_secret:
                return JSONResponse({"error": "Unauthorized"}, status_code=401)
            logger.warning("Automatic trigger without a valid cron secret")
        result = await svc.controller.auto_tick()
        return JSONResponse(_tick_payload(result))

    @app.post("/api/generate-arena-debate")
    async def manual_generate(request: Request) -> dict:
        result = await _services(request).controller.tick()
        return _tick_payload(result)

    @app.post("/api/debate")
    async def lab_debate(request: Request, body: LabRequest | None = None) -> JSONResponse:
        if body is None or not body.scenario:
            return JSONResponse({"error": "scenario is required"}, status_code=400)
        svc = _services(request)
        analysis = await run_lab_analysis(svc.store, svc.producer, body.scenario)
        return JSONResponse({
            "title": analysis.debate.title,
            "transcript": [turn_to_dict(t) for t in analysis.debate.transcript],
            "winner": analysis.debate.winner,
            "id": analysis.id,
            "created_at": analysis.created_at,
        })

    @app.get("/api/faction")
    async def faction(request: Request) -> JSONResponse:
        tally = await global_tally(_services(request).store)
        payload = asdict(tally)
        payload["flavor"] = flavor_text(tally)
        return JSONResponse(payload, headers=_NO_STORE)

    return app
