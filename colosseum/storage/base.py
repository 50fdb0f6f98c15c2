"""Abstract debate store."""

from abc import ABC, abstractmethod

from colosseum.models import Debate, GeneratedDebate, LabAnalysis


class StorageError(Exception):
    """Raised when the backing store rejects or fails a request."""


class DebateStore(ABC):
    """Row-oriented persistence for debates, votes and lab analyses."""

    @abstractmethod
    async def latest_debate(self) -> Debate | None:
        """Return the most recently created debate, or None when there is none."""
        ...

    @abstractmethod
    async def get_debate(self, debate_id: str) -> Debate | None:
        ...

    @abstractmethod
    async def list_debates(self, limit: int) -> list[Debate]:
        """Return up to `limit` debates, newest first."""
        ...

    @abstractmethod
    async def insert_debate(self, debate: Debate) -> Debate:
        """Persist a new debate and return it with id and created_at filled in."""
        ...

    @abstractmethod
    async def update_transcript(self, debate: Debate) -> None:
        """Overwrite the stored transcript blob (turns and maxTurns) of a debate."""
        ...

    @abstractmethod
    async def delete_debate(self, debate_id: str) -> None:
        ...

    @abstractmethod
    async def vote_counts(self) -> list[tuple[int, int]]:
        """Return (votes_gto, votes_exploit) for every stored debate."""
        ...

    @abstractmethod
    async def get_votes(self, debate_id: str) -> tuple[int, int] | None:
        ...

    @abstractmethod
    async def set_vote_count(self, debate_id: str, side: str, value: int) -> None:
        ...

    @abstractmethod
    async def get_active_debate_id(self) -> str | None:
        ...

    @abstractmethod
    async def set_active_debate_id(self, debate_id: str) -> None:
        ...

    @abstractmethod
    async def insert_lab_analysis(
        self,
        input_scenario: dict,
        debate: GeneratedDebate,
    ) -> LabAnalysis:
        ...

    async def active_debate(self) -> Debate | None:
        """Return the debate named by the active pointer.

        Falls back to the latest debate when no pointer is stored or the
        pointer names a row that no longer resolves.
        """
        debate_id = await self.get_active_debate_id()
        if debate_id is not None:
            debate = await self.get_debate(debate_id)
            if debate is not None:
                return debate
        return await self.latest_debate()
