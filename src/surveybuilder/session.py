"""
Editing Session

The single owner of everything a survey builder tab edits:
    - the live Survey aggregate
    - the selected question
    - the dirty flag
    - the undo/redo History
    - the collaborator list
    - the DraftStore used for local drafts
    - the WorkingCopy file the live survey is autosaved to

ARCHITECTURAL RULE:
    All changes go through the methods below. The survey exposed by the
    session is immutable, so callers can read it freely but can only
    change it by asking the session.

Every mutating operation records the pre-mutation survey in history and
marks the session dirty. set_survey() (and everything built on it:
load_draft, import_document, reset) starts a fresh history instead.
"""
from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Any, List, Mapping, Optional, Tuple, Union

from surveybuilder import operations
from surveybuilder.collaborators import Collaborator, CollaboratorRole
from surveybuilder.conditions import check_conditional_logic, visible_questions
from surveybuilder.config import Settings, get_settings
from surveybuilder.drafts import DraftStore, WorkingCopy, open_draft_store
from surveybuilder.errors import DraftNotFound, SurveyValidationError
from surveybuilder.history import History
from surveybuilder.model import Survey, check_survey, new_survey, utcnow_iso
from surveybuilder.questions import Question, QuestionType, check_question, create_question
from surveybuilder.serialization import export_survey, import_survey


logger = logging.getLogger(__name__)


class EditingSession:
    """
    Survey editing state plus the operations allowed on it.

    Args:
        survey: Initial survey; a new empty survey if omitted
        draft_store: Where save_draft() writes; the file store at
            settings.drafts_path if omitted
        history_limit: Undo depth; falls back to settings.history_limit
        settings: Settings instance; the cached global settings if omitted
        autosave: Keep the live survey in the working copy file and restore
            it when no survey is given; falls back to settings.autosave
    """

    def __init__(
        self,
        survey: Optional[Survey] = None,
        draft_store: Optional[DraftStore] = None,
        history_limit: Optional[int] = None,
        settings: Optional[Settings] = None,
        autosave: Optional[bool] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.draft_store = draft_store if draft_store is not None else open_draft_store(self.settings.drafts_path)
        if autosave is None:
            autosave = self.settings.autosave
        self.working_copy: Optional[WorkingCopy] = (
            WorkingCopy(self.settings.resolved_working_copy_path()) if autosave else None
        )
        if history_limit is None:
            history_limit = self.settings.history_limit
        self._history = History(limit=history_limit)
        self._survey = new_survey(self.settings.default_survey_title)
        self._selected_id: Optional[str] = None
        self._dirty = False
        self._collaborators: Tuple[Collaborator, ...] = ()
        if survey is not None:
            self.set_survey(survey)
        elif self.working_copy is not None:
            self._restore_working_copy()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def survey(self) -> Survey:
        return self._survey

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._survey.questions

    @property
    def selected_question_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_question(self) -> Optional[Question]:
        if self._selected_id is None:
            return None
        return self._survey.get_question(self._selected_id)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def history(self) -> History:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def collaborators(self) -> Tuple[Collaborator, ...]:
        return self._collaborators

    def visible_questions(self, answers: Mapping[str, Any]) -> List[Question]:
        """Questions a respondent with these answers would see, in order."""
        return visible_questions(self._survey.questions, answers)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(self, updated: Survey, action: str) -> None:
        self._history.record(self._survey)
        self._survey = updated
        self._dirty = True
        self._persist_working_copy()
        logger.debug("%s (undo depth %d)", action, len(self._history.past))

    def _persist_working_copy(self) -> None:
        if self.working_copy is not None:
            self.working_copy.save(self._survey)

    def _restore_working_copy(self) -> None:
        restored = self.working_copy.load()
        if restored is None:
            return
        try:
            check_survey(restored, complete=False)
        except SurveyValidationError as e:
            logger.warning("Ignoring working copy %s: %s", self.working_copy.path, e)
            return
        self._survey = restored
        logger.info("Restored working copy from %s", self.working_copy.path)

    def _sync_selection(self) -> None:
        if self._selected_id is not None and self._survey.get_question(self._selected_id) is None:
            self._selected_id = None

    def _assign_id_everywhere(self, survey_id: str) -> None:
        def fill(snapshot: Survey) -> Survey:
            return snapshot if snapshot.id else operations.assign_id(snapshot, survey_id)

        self._survey = fill(self._survey)
        self._history.rewrite(fill)

    # ------------------------------------------------------------------
    # Whole-survey operations
    # ------------------------------------------------------------------

    def set_survey(self, survey: Survey) -> None:
        """
        Replace the survey wholesale and start a fresh session boundary.

        Selection and history are cleared and the session is clean.
        This is the one replacement that is not recorded in history.

        Raises:
            SurveyValidationError: If the survey breaks a structural invariant
                (duplicate ids, dangling or cyclic conditional logic)
        """
        check_survey(survey, complete=False)
        self._survey = survey
        self._selected_id = None
        self._history.clear()
        self._dirty = False
        self._persist_working_copy()
        logger.debug("Survey replaced (id=%s, %d questions)", survey.id, len(survey.questions))

    def reset(self) -> None:
        """Back to a new empty survey with no selection, history or collaborators."""
        self.set_survey(new_survey(self.settings.default_survey_title))
        self._collaborators = ()

    def mark_as_saved(self) -> None:
        self._dirty = False

    def mark_persisted(self, survey_id: str) -> None:
        """
        Record that the remote backend holds the survey under survey_id.

        The remote id replaces any local draft id and is_draft is cleared,
        on the live survey and on every history snapshot, so undo never
        brings back an unsaved identity. A local draft stored under the
        old id moves to the new one. Not recorded in history.
        """
        previous_id = self._survey.id

        def persisted(snapshot: Survey) -> Survey:
            return dataclasses.replace(snapshot, id=survey_id, is_draft=False)

        self._survey = persisted(self._survey)
        self._history.rewrite(persisted)
        if previous_id and previous_id != survey_id:
            self._rekey_draft(previous_id, survey_id)
        self._persist_working_copy()

    def _rekey_draft(self, old_id: str, new_id: str) -> None:
        stored = self.draft_store.get(old_id)
        if stored is None:
            return
        self.draft_store.delete(old_id)
        self.draft_store.save(dataclasses.replace(stored, id=new_id))
        logger.debug("Draft %s now stored as %s", old_id, new_id)

    def update_title(self, title: str) -> None:
        self._commit(operations.update_title(self._survey, title), "Title updated")

    def update_description(self, description: str) -> None:
        self._commit(operations.update_description(self._survey, description), "Description updated")

    def update_metadata(self, **fields: Any) -> None:
        """Shallow-merge SurveyMetadata fields, e.g. update_metadata(is_public=True)."""
        self._commit(operations.update_metadata(self._survey, **fields), "Metadata updated")

    def add_tag(self, tag: str) -> None:
        self._commit(operations.add_tag(self._survey, tag), f"Tag added: {tag!r}")

    def remove_tag(self, tag: str) -> None:
        self._commit(operations.remove_tag(self._survey, tag), f"Tag removed: {tag!r}")

    # ------------------------------------------------------------------
    # Question operations
    # ------------------------------------------------------------------

    def add_question(self, question_type: Union[QuestionType, str]) -> Question:
        """
        Append a new question of the given type and select it.

        Raises:
            UnsupportedQuestionType: If the type tag is unknown
        """
        question = create_question(question_type)
        self._commit(operations.append_question(self._survey, question), f"Added {question.type.value} question {question.id}")
        self._selected_id = question.id
        return question

    def update_question(self, question: Question) -> None:
        """
        Replace the question with the same id.

        An id that matches nothing leaves the survey unchanged, but the
        call is still recorded and marks the session dirty.

        Raises:
            QuestionValidationError: If the question is malformed
            ConditionalLogicError: If its conditional logic is self-referential,
                dangling, or closes a dependency cycle
        """
        check_question(question)
        check_conditional_logic(question, self._survey.questions)
        if self._survey.get_question(question.id) is None:
            logger.warning("update_question: no question with id %s", question.id)
        self._commit(operations.replace_question(self._survey, question), f"Updated question {question.id}")

    def remove_question(self, question_id: str) -> None:
        """Remove a question, strip rules that depended on it, and fix the selection."""
        self._commit(operations.remove_question(self._survey, question_id), f"Removed question {question_id}")
        if self._selected_id == question_id:
            self._selected_id = None

    def reorder_questions(self, from_index: int, to_index: int) -> None:
        """Move one question; out-of-range indices are clamped."""
        self._commit(
            operations.reorder_questions(self._survey, from_index, to_index),
            f"Moved question {from_index} -> {to_index}",
        )

    def select_question(self, question_id: Optional[str]) -> None:
        """Select a question (None clears). Unknown ids are ignored. Not recorded."""
        if question_id is not None and self._survey.get_question(question_id) is None:
            logger.warning("select_question: no question with id %s", question_id)
            return
        self._selected_id = question_id

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Step back one edit. Returns False (and does nothing) if there is none."""
        previous = self._history.undo(self._survey)
        if previous is None:
            return False
        self._survey = previous
        self._dirty = True
        self._sync_selection()
        self._persist_working_copy()
        logger.debug("Undo (undo depth %d, redo depth %d)", len(self._history.past), len(self._history.future))
        return True

    def redo(self) -> bool:
        """Replay one undone edit. Returns False (and does nothing) if there is none."""
        following = self._history.redo(self._survey)
        if following is None:
            return False
        self._survey = following
        self._dirty = True
        self._sync_selection()
        self._persist_working_copy()
        logger.debug("Redo (undo depth %d, redo depth %d)", len(self._history.past), len(self._history.future))
        return True

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_document(self, fmt: str = "json") -> str:
        return export_survey(self._survey, fmt)

    def import_document(self, text: str, fmt: str = "json") -> Survey:
        """
        Replace the survey with an imported document.

        Raises:
            SurveyValidationError: If the document is malformed or invalid;
                the current survey is left untouched
        """
        survey = import_survey(text, fmt)
        self.set_survey(survey)
        return survey

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def save_draft(self) -> Survey:
        """
        Store the current survey as a local draft.

        Generates an id if the survey has none, stamps lastSavedAt and
        updated_at, and upserts it into the draft store. The live survey
        takes the stamped values without a history entry and the session
        becomes clean.
        """
        now = utcnow_iso()
        if not self._survey.id:
            self._assign_id_everywhere(str(uuid.uuid4()))
        saved = dataclasses.replace(self._survey, is_draft=True, last_saved_at=now, updated_at=now)
        self.draft_store.save(saved)
        self._survey = saved
        self._dirty = False
        self._persist_working_copy()
        logger.debug("Saved draft %s", saved.id)
        return saved

    def get_drafts(self) -> List[Survey]:
        return self.draft_store.list()

    def load_draft(self, draft_id: str) -> Survey:
        """
        Make a stored draft the live survey (history is reset).

        Raises:
            DraftNotFound: If no draft has that id
        """
        draft = self.draft_store.get(draft_id)
        if draft is None:
            logger.warning("load_draft: no draft with id %s", draft_id)
            raise DraftNotFound(draft_id)
        self.set_survey(draft)
        return draft

    def delete_draft(self, draft_id: str) -> None:
        self.draft_store.delete(draft_id)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def set_collaborators(self, collaborators: List[Collaborator]) -> None:
        self._collaborators = tuple(collaborators)

    def add_collaborator(self, collaborator: Collaborator) -> None:
        self._collaborators = self._collaborators + (collaborator,)

    def update_collaborator(self, key: str, role: CollaboratorRole) -> None:
        """Change the role of the collaborator whose id (or user id) is key; unknown keys are ignored."""
        self._collaborators = tuple(
            dataclasses.replace(c, role=role) if c.key == key else c for c in self._collaborators
        )

    def remove_collaborator(self, key: str) -> None:
        self._collaborators = tuple(c for c in self._collaborators if c.key != key)
