"""
Local draft persistence.

A draft store is a key-value port over serialized survey records, keyed by
survey id. The editing session only talks to the DraftStore interface, so
the medium (memory, a JSON file, a YAML file) is swappable.

WorkingCopy keeps the live survey of a session on disk so that editing
survives a restart even when no draft was saved.

Nothing here talks to the network.
"""
from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from surveybuilder.config import get_settings
from surveybuilder.errors import SurveyValidationError
from surveybuilder.model import Survey
from surveybuilder.serialization import (
    dump_document,
    format_for_path,
    load_document,
    survey_from_dict,
    survey_to_dict,
)


logger = logging.getLogger(__name__)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class DraftStore(ABC):
    """
    Storage port for drafts.

    Implementations keep records in insertion order; saving an existing id
    replaces the record in place.
    """

    @abstractmethod
    def save(self, survey: Survey) -> None:
        """Upsert survey under survey.id (which must be set)."""

    @abstractmethod
    def get(self, draft_id: str) -> Optional[Survey]:
        """Return the stored draft or None."""

    @abstractmethod
    def list(self) -> List[Survey]:
        """All drafts with a valid id, in storage order."""

    @abstractmethod
    def delete(self, draft_id: str) -> None:
        """Remove a draft; unknown ids are ignored."""


class InMemoryDraftStore(DraftStore):
    """Drafts held in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._drafts: Dict[str, Survey] = {}

    def save(self, survey: Survey) -> None:
        if not survey.id:
            raise ValueError("cannot store a draft without an id")
        self._drafts[survey.id] = survey

    def get(self, draft_id: str) -> Optional[Survey]:
        return self._drafts.get(draft_id)

    def list(self) -> List[Survey]:
        return [s for s in self._drafts.values() if s.id]

    def delete(self, draft_id: str) -> None:
        self._drafts.pop(draft_id, None)


class FileDraftStore(DraftStore):
    """
    Drafts kept in a single JSON or YAML document on disk.

    The document maps draft id -> survey record. The file is rewritten
    atomically on every change; a missing file reads as an empty store.
    Records that fail to parse are skipped with a warning rather than
    making every other draft unreadable.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.fmt = format_for_path(self.path)

    def _read_records(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        data = load_document(text, self.fmt)
        if not isinstance(data, dict):
            raise SurveyValidationError([f"draft file {self.path} must contain an object"])
        return data

    def _write_records(self, records: Dict[str, Any]) -> None:
        _write_atomic(self.path, dump_document(records, self.fmt))

    def _parse(self, key: str, record: Any) -> Optional[Survey]:
        try:
            survey = survey_from_dict(record)
        except SurveyValidationError as e:
            logger.warning("Skipping unreadable draft %s in %s: %s", key, self.path, e)
            return None
        if not survey.id:
            return None
        return survey

    def save(self, survey: Survey) -> None:
        if not survey.id:
            raise ValueError("cannot store a draft without an id")
        records = self._read_records()
        records[survey.id] = survey_to_dict(survey)
        self._write_records(records)
        logger.debug("Wrote draft %s to %s", survey.id, self.path)

    def get(self, draft_id: str) -> Optional[Survey]:
        record = self._read_records().get(draft_id)
        if record is None:
            return None
        return self._parse(draft_id, record)

    def list(self) -> List[Survey]:
        drafts = []
        for key, record in self._read_records().items():
            survey = self._parse(key, record)
            if survey is not None:
                drafts.append(survey)
        return drafts

    def delete(self, draft_id: str) -> None:
        records = self._read_records()
        if draft_id not in records:
            return
        del records[draft_id]
        self._write_records(records)
        logger.debug("Deleted draft %s from %s", draft_id, self.path)


def open_draft_store(path: Optional[Union[str, Path]] = None) -> FileDraftStore:
    """File-backed store at path, or at the configured drafts_path."""
    return FileDraftStore(path if path is not None else get_settings().drafts_path)


class WorkingCopy:
    """
    The live survey of an editing session, kept on disk between sessions.

    Holds a single survey record (selection and history are not kept).
    A missing, empty or unreadable file loads as None.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.fmt = format_for_path(self.path)

    def load(self) -> Optional[Survey]:
        if not self.path.exists():
            return None
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return None
        try:
            return survey_from_dict(load_document(text, self.fmt))
        except SurveyValidationError as e:
            logger.warning("Ignoring unreadable working copy %s: %s", self.path, e)
            return None

    def save(self, survey: Survey) -> None:
        _write_atomic(self.path, dump_document(survey_to_dict(survey), self.fmt))

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
