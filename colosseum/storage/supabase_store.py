"""Supabase-backed DebateStore using the async supabase-py client."""

import logging
import os

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from config.config_loader import StorageConfig
from colosseum.models import Debate, GeneratedDebate, LabAnalysis
from colosseum.records import debate_from_row, debate_to_row, generated_to_json, transcript_blob
from colosseum.storage.base import DebateStore, StorageError

logger = logging.getLogger(__name__)

_ACTIVE_KEY = "active_debate"

VOTE_COLUMNS = {"gto": "votes_gto", "exploit": "votes_exploit"}

# invalid_text_representation: the id is not a valid uuid, so no row can match
_INVALID_ID_CODE = "22P02"


class SupabaseDebateStore(DebateStore):
    """Tables: arena_debates, lab_analyses and a key/value arena_state."""

    def __init__(self, client: AsyncClient, config: StorageConfig) -> None:
        self._client = client
        self._config = config

    @classmethod
    async def connect(cls, config: StorageConfig) -> "SupabaseDebateStore":
        url = os.environ.get(config.url_env, "").strip()
        key = os.environ.get(config.key_env, "").strip()
        if not url or not key:
            raise StorageError(f"Missing Supabase credentials: set {config.url_env} and {config.key_env}")
        client = await acreate_client(url, key)
        logger.info("Connected to Supabase at %s", url)
        return cls(client, config)

    def _debates(self):
        return self._client.table(self._config.debates_table)

    async def _execute(self, query, action: str, by_id: bool = False) -> list[dict]:
        """Run a query, wrapping any failure in StorageError.

        With by_id set, an id the database cannot parse as a uuid matches
        no rows instead of failing.
        """
        try:
            response = await query.execute()
        except APIError as exc:
            if by_id and exc.code == _INVALID_ID_CODE:
                logger.debug("%s: malformed id, treating as missing (%s)", action, exc.message)
                return []
            raise StorageError(f"{action} failed: {exc.message}") from exc
        except Exception as exc:
            raise StorageError(f"{action} failed: {exc}") from exc
        return response.data or []

    async def latest_debate(self) -> Debate | None:
        rows = await self._execute(
            self._debates().select("*").order("created_at", desc=True).limit(1),
            "Fetch latest debate",
        )
        return debate_from_row(rows[0]) if rows else None

    async def get_debate(self, debate_id: str) -> Debate | None:
        rows = await self._execute(
            self._debates().select("*").eq("id", debate_id).limit(1),
            f"Fetch debate {debate_id}",
            by_id=True,
        )
        return debate_from_row(rows[0]) if rows else None

    async def list_debates(self, limit: int) -> list[Debate]:
        rows = await self._execute(
            self._debates().select("*").order("created_at", desc=True).limit(limit),
            "List debates",
        )
        return [debate_from_row(r) for r in rows]

    async def insert_debate(self, debate: Debate) -> Debate:
        rows = await self._execute(self._debates().insert(debate_to_row(debate)), "Insert debate")
        if not rows:
            raise StorageError("Insert debate returned no row")
        return debate_from_row(rows[0])

    async def update_transcript(self, debate: Debate) -> None:
        if debate.id is None:
            raise StorageError("Cannot update a debate without an id")
        await self._execute(
            self._debates().update({"transcript_json": transcript_blob(debate)}).eq("id", debate.id),
            f"Update debate {debate.id}",
        )

    async def delete_debate(self, debate_id: str) -> None:
        await self._execute(self._debates().delete().eq("id", debate_id), f"Delete debate {debate_id}")

    async def vote_counts(self) -> list[tuple[int, int]]:
        rows = await self._execute(self._debates().select("votes_gto, votes_exploit"), "Fetch vote counts")
        return [(int(r.get("votes_gto") or 0), int(r.get("votes_exploit") or 0)) for r in rows]

    async def get_votes(self, debate_id: str) -> tuple[int, int] | None:
        rows = await self._execute(
            self._debates().select("votes_gto, votes_exploit").eq("id", debate_id).limit(1),
            f"Fetch votes for {debate_id}",
            by_id=True,
        )
        if not rows:
            return None
        return int(rows[0].get("votes_gto") or 0), int(rows[0].get("votes_exploit") or 0)

    async def set_vote_count(self, debate_id: str, side: str, value: int) -> None:
        await self._execute(
            self._debates().update({VOTE_COLUMNS[side]: value}).eq("id", debate_id),
            f"Update votes for {debate_id}",
        )

    async def get_active_debate_id(self) -> str | None:
        rows = await self._execute(
            self._client.table(self._config.state_table).select("value").eq("key", _ACTIVE_KEY).limit(1),
            "Fetch active debate pointer",
        )
        if not rows or rows[0].get("value") in (None, ""):
            return None
        return str(rows[0]["value"])

    async def set_active_debate_id(self, debate_id: str) -> None:
        await self._execute(
            self._client.table(self._config.state_table).upsert({"key": _ACTIVE_KEY, "value": debate_id}),
            "Update active debate pointer",
        )

    async def insert_lab_analysis(self, input_scenario: dict, debate: GeneratedDebate) -> LabAnalysis:
        rows = await self._execute(
            self._client.table(self._config.lab_table).insert({
                "input_scenario": input_scenario,
                "transcript_json": generated_to_json(debate),
                "user_id": None,
            }),
            "Insert lab analysis",
        )
        row = rows[0] if rows else {}
        return LabAnalysis(
            id=str(row["id"]) if row.get("id") is not None else None,
            created_at=row.get("created_at"),
            debate=debate,
        )
