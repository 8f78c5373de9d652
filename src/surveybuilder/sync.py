"""
Remote save coordination.

The remote backend is consumed through the SurveyRepository port. Saves are
serialized by SaveCoordinator:

    - at most one save is in flight at a time
    - save requests made while one is in flight coalesce into a single
      follow-up save of whatever the survey looks like when it starts
    - a finished save only marks the session clean if nothing was edited
      while it was in flight
    - the remote id becomes the survey's id, replacing any local draft id

This closes the stale-save race where a slow response lands after newer
edits and reports them as saved.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from surveybuilder.errors import SaveError
from surveybuilder.model import Survey
from surveybuilder.serialization import survey_to_dict

if TYPE_CHECKING:
    from surveybuilder.session import EditingSession


logger = logging.getLogger(__name__)


class SurveyRepository(ABC):
    """Remote create/read/update/delete of survey documents keyed by an opaque id."""

    @abstractmethod
    async def create(self, document: Dict[str, Any]) -> str:
        """Store a new survey document and return its id."""

    @abstractmethod
    async def update(self, survey_id: str, document: Dict[str, Any]) -> None:
        """Overwrite the document stored under survey_id."""

    @abstractmethod
    async def get(self, survey_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a document, or None if it does not exist."""

    @abstractmethod
    async def delete(self, survey_id: str) -> None:
        """Remove a document; unknown ids are ignored."""


class InMemorySurveyRepository(SurveyRepository):
    """
    Repository kept in a dict, for tests and offline use.

    Args:
        delay: Seconds each call waits before completing, to simulate latency
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []

    async def _wait(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)

    async def create(self, document: Dict[str, Any]) -> str:
        await self._wait()
        survey_id = uuid.uuid4().hex
        self.documents[survey_id] = document
        self.calls.append(("create", survey_id))
        return survey_id

    async def update(self, survey_id: str, document: Dict[str, Any]) -> None:
        await self._wait()
        if survey_id not in self.documents:
            raise KeyError(survey_id)
        self.documents[survey_id] = document
        self.calls.append(("update", survey_id))

    async def get(self, survey_id: str) -> Optional[Dict[str, Any]]:
        await self._wait()
        self.calls.append(("get", survey_id))
        return self.documents.get(survey_id)

    async def delete(self, survey_id: str) -> None:
        await self._wait()
        self.documents.pop(survey_id, None)
        self.calls.append(("delete", survey_id))


class SaveCoordinator:
    """
    Serializes saves of one EditingSession to a SurveyRepository.

    Args:
        session: The EditingSession whose survey is saved
        repository: Remote persistence port
        remote_id: Id of the survey in the repository, if it already exists
            there. Defaults to the survey's id when the survey is not a draft.
            Otherwise the first save looks the survey's id up in the
            repository and only creates a record if none is found.
    """

    def __init__(self, session: "EditingSession", repository: SurveyRepository, remote_id: Optional[str] = None) -> None:
        self.session = session
        self.repository = repository
        if remote_id is None and not session.survey.is_draft:
            remote_id = session.survey.id
        self.remote_id = remote_id
        self._task: Optional[asyncio.Task] = None
        self._pending = False
        self.saves_completed = 0

    @property
    def is_saving(self) -> bool:
        return self._task is not None and not self._task.done()

    async def request_save(self) -> Survey:
        """
        Save the current survey, joining any save already in flight.

        Returns:
            The survey state that was last written

        Raises:
            SaveError: If the repository call fails
        """
        if self.is_saving:
            self._pending = True
            logger.debug("Save requested while another is in flight; coalescing")
        else:
            self._task = asyncio.ensure_future(self._run())
        return await asyncio.shield(self._task)

    async def _run(self) -> Survey:
        try:
            while True:
                self._pending = False
                written = await self._save_once()
                if not self._pending:
                    return written
        finally:
            self._pending = False

    async def _save_once(self) -> Survey:
        snapshot = self.session.survey
        document = survey_to_dict(snapshot, include_draft_fields=False)
        try:
            if self.remote_id is None and snapshot.id:
                if await self.repository.get(snapshot.id) is not None:
                    self.remote_id = snapshot.id
            if self.remote_id is None:
                self.remote_id = await self.repository.create(document)
                logger.debug("Created remote survey %s", self.remote_id)
            else:
                await self.repository.update(self.remote_id, document)
                logger.debug("Updated remote survey %s", self.remote_id)
        except Exception as e:
            logger.warning("Saving survey failed: %s", e)
            raise SaveError(f"Failed to save survey: {e}") from e

        unchanged = self.session.survey is snapshot
        self.session.mark_persisted(self.remote_id)
        if unchanged:
            self.session.mark_as_saved()
        self.saves_completed += 1
        return snapshot
