"""
Tests for the editing session: mutations, selection, history and drafts.
"""

import dataclasses

import pytest

from surveybuilder.collaborators import Collaborator, CollaboratorRole
from surveybuilder.config import Settings
from surveybuilder.conditions import should_show
from surveybuilder.drafts import FileDraftStore
from surveybuilder.errors import (
    ConditionalLogicError,
    DraftNotFound,
    QuestionValidationError,
    SurveyValidationError,
    UnsupportedQuestionType,
)
from surveybuilder.model import Survey
from surveybuilder.questions import (
    ConditionalLogic,
    MultipleChoiceQuestion,
    QuestionType,
    TextQuestion,
)
from surveybuilder.session import EditingSession


class TestInitialState:
    def test_new_session(self, session):
        """Should start with an empty clean survey and nothing selected."""
        assert session.survey.title == "Untitled Survey"
        assert session.questions == ()
        assert session.selected_question_id is None
        assert not session.is_dirty
        assert not session.can_undo
        assert not session.can_redo

    def test_initial_survey_is_validated(self, settings):
        duplicate = Survey(title="S", questions=(TextQuestion(id="q", title="A"), TextQuestion(id="q", title="B")))
        with pytest.raises(SurveyValidationError):
            EditingSession(duplicate, settings=settings)


class TestMutations:
    """Each mutation records history and marks the session dirty."""

    def test_update_title(self, session):
        before = session.survey
        session.update_title("Pulse")
        assert session.survey.title == "Pulse"
        assert session.is_dirty
        assert session.history.past == (before,)

    def test_update_description_and_metadata(self, session):
        session.update_description("Weekly")
        session.update_metadata(is_public=True, category="HR")
        session.add_tag("team")
        assert session.survey.description == "Weekly"
        assert session.survey.metadata.is_public
        assert session.survey.metadata.category == "HR"
        assert session.survey.metadata.tags == ("team",)
        session.remove_tag("team")
        assert session.survey.metadata.tags == ()
        assert len(session.history.past) == 4

    def test_add_question_selects_it(self, session):
        question = session.add_question(QuestionType.MULTIPLE_CHOICE)
        assert session.questions == (question,)
        assert session.selected_question_id == question.id
        assert session.selected_question == question
        assert question.options == ("Option 1", "Option 2")

    def test_add_unsupported_question(self, session):
        with pytest.raises(UnsupportedQuestionType):
            session.add_question("slider")
        assert not session.can_undo

    def test_update_question(self, session):
        question = session.add_question("text")
        session.update_question(dataclasses.replace(question, title="Name?"))
        assert session.survey.get_question(question.id).title == "Name?"

    def test_update_question_rejects_invalid(self, session):
        """Validation errors are raised at commit and leave the survey untouched."""
        question = session.add_question("checkbox")
        before = session.survey
        with pytest.raises(QuestionValidationError):
            session.update_question(dataclasses.replace(question, title="Pick", options=()))
        assert session.survey is before

    def test_update_question_rejects_bad_logic(self, session):
        question = session.add_question("text")
        wired = dataclasses.replace(
            question, title="Why?", conditional_logic=ConditionalLogic(depends_on="nowhere", show_when=("x",))
        )
        with pytest.raises(ConditionalLogicError):
            session.update_question(wired)

    def test_update_question_unknown_id_is_recorded(self, session):
        """No match: survey content unchanged, but still recorded and dirty."""
        before = session.survey
        session.update_question(TextQuestion(id="ghost", title="Ghost"))
        assert session.survey == before
        assert session.is_dirty
        assert session.history.past == (before,)

    def test_remove_question_clears_selection_and_logic(self, session):
        gate = session.add_question("multiple-choice")
        child = session.add_question("text")
        session.update_question(
            dataclasses.replace(
                child, title="Why?", conditional_logic=ConditionalLogic(depends_on=gate.id, show_when=("Option 1",))
            )
        )
        session.select_question(gate.id)
        session.remove_question(gate.id)
        assert session.selected_question_id is None
        assert session.survey.get_question(child.id).conditional_logic is None

    def test_remove_other_question_keeps_selection(self, session):
        first = session.add_question("text")
        second = session.add_question("date")
        session.select_question(first.id)
        session.remove_question(second.id)
        assert session.selected_question_id == first.id

    def test_reorder(self, feedback_session):
        feedback_session.reorder_questions(0, 5)
        assert feedback_session.survey.question_ids()[-1] == "likes-surveys"
        assert feedback_session.can_undo


class TestSelection:
    def test_select_and_clear(self, feedback_session):
        feedback_session.select_question("recommend")
        assert feedback_session.selected_question.title.startswith("How likely")
        feedback_session.select_question(None)
        assert feedback_session.selected_question is None

    def test_select_unknown_is_ignored(self, feedback_session):
        feedback_session.select_question("recommend")
        feedback_session.select_question("nope")
        assert feedback_session.selected_question_id == "recommend"

    def test_selection_not_recorded(self, feedback_session):
        feedback_session.select_question("recommend")
        assert not feedback_session.can_undo
        assert not feedback_session.is_dirty


class TestUndoRedo:
    def test_undo_on_empty_history(self, session):
        """Undo and redo on empty stacks are no-ops."""
        before = session.survey
        assert session.undo() is False
        assert session.redo() is False
        assert session.survey is before

    def test_undo_restores_previous_state(self, session):
        before = session.survey
        session.update_title("Changed")
        assert session.undo() is True
        assert session.survey == before
        assert session.can_redo

    def test_undo_then_redo_round_trip(self, feedback_session):
        """undo() then redo() restores the exact pre-undo state."""
        feedback_session.update_title("A")
        feedback_session.add_question("scale")
        feedback_session.remove_question("channels")
        feedback_session.reorder_questions(1, 3)
        for _ in range(4):
            current = feedback_session.survey
            feedback_session.undo()
            feedback_session.redo()
            assert feedback_session.survey == current
            feedback_session.undo()

    def test_new_edit_discards_redo(self, session):
        session.update_title("One")
        session.update_title("Two")
        session.undo()
        session.update_title("Three")
        assert not session.can_redo
        session.undo()
        assert session.survey.title == "One"

    def test_undo_fixes_selection(self, session):
        """Undoing an add clears the selection of the vanished question."""
        session.add_question("text")
        session.undo()
        assert session.questions == ()
        assert session.selected_question_id is None

    def test_set_survey_clears_history(self, session, feedback_survey):
        session.update_title("Edited")
        session.set_survey(feedback_survey)
        assert not session.can_undo
        assert not session.can_redo
        assert not session.is_dirty
        assert session.selected_question_id is None

    def test_history_limit(self, settings):
        session = EditingSession(history_limit=2, settings=settings)
        for title in ("a", "b", "c", "d"):
            session.update_title(title)
        assert session.undo() and session.undo()
        assert session.undo() is False
        assert session.survey.title == "b"


class TestDrafts:
    """Draft persistence through the session."""

    def test_save_draft_assigns_id(self, session):
        session.update_title("Draft one")
        saved = session.save_draft()
        assert saved.id
        assert saved.last_saved_at is not None
        assert saved.is_draft
        assert session.survey == saved
        assert not session.is_dirty
        assert session.get_drafts() == [saved]

    def test_save_draft_keeps_existing_id(self, session):
        first = session.save_draft()
        session.update_title("Renamed")
        second = session.save_draft()
        assert second.id == first.id
        assert len(session.get_drafts()) == 1
        assert session.get_drafts()[0].title == "Renamed"

    def test_undo_after_save_keeps_id(self, session):
        """History snapshots receive the id assigned on first save."""
        session.update_title("Before save")
        saved = session.save_draft()
        session.undo()
        assert session.survey.id == saved.id

    def test_draft_round_trip(self, feedback_session):
        feedback_session.select_question("recommend")
        feedback_session.update_title("To be restored")
        saved = feedback_session.save_draft()
        feedback_session.update_title("Scratch")
        loaded = feedback_session.load_draft(saved.id)
        assert loaded == saved
        assert feedback_session.survey == saved
        assert feedback_session.selected_question_id is None
        assert not feedback_session.can_undo
        assert not feedback_session.can_redo
        assert not feedback_session.is_dirty

    def test_draft_round_trip_through_file(self, tmp_path, settings, feedback_survey):
        store = FileDraftStore(tmp_path / "drafts.yaml")
        session = EditingSession(feedback_survey, draft_store=store, settings=settings)
        saved = session.save_draft()
        fresh = EditingSession(draft_store=FileDraftStore(tmp_path / "drafts.yaml"), settings=settings)
        assert fresh.load_draft(saved.id) == saved

    def test_drafts_with_fresh_question(self, session):
        """A draft may hold an untitled question that is still being edited."""
        session.add_question("date")
        saved = session.save_draft()
        session.reset()
        assert session.load_draft(saved.id) == saved

    def test_multiple_drafts_in_order(self, session):
        session.update_title("First")
        first = session.save_draft()
        session.reset()
        session.update_title("Second")
        second = session.save_draft()
        assert [d.id for d in session.get_drafts()] == [first.id, second.id]

    def test_load_unknown_draft(self, session):
        with pytest.raises(DraftNotFound):
            session.load_draft("missing")

    def test_delete_draft(self, session):
        saved = session.save_draft()
        session.delete_draft(saved.id)
        session.delete_draft("missing")
        assert session.get_drafts() == []


class TestImportExport:
    def test_export_import(self, feedback_session, session):
        text = feedback_session.export_document()
        imported = session.import_document(text)
        assert imported.question_ids() == feedback_session.survey.question_ids()
        assert imported.id is None
        assert not session.can_undo

    def test_invalid_import_leaves_survey(self, session):
        before = session.survey
        with pytest.raises(SurveyValidationError):
            session.import_document('{"title": "X", "questions": [{"type": "text"}]}')
        assert session.survey is before


class TestCollaborators:
    def test_collaborator_lifecycle(self, session):
        alice = Collaborator(user_id="u1", role=CollaboratorRole.EDITOR, name="Alice")
        bob = Collaborator(user_id="u2", id="m2")
        session.set_collaborators([alice])
        session.add_collaborator(bob)
        session.update_collaborator("m2", CollaboratorRole.OWNER)
        assert [c.role for c in session.collaborators] == [CollaboratorRole.EDITOR, CollaboratorRole.OWNER]
        session.remove_collaborator("u1")
        assert [c.user_id for c in session.collaborators] == ["u2"]
        assert not session.can_undo

    def test_reset_clears_collaborators(self, session):
        session.add_collaborator(Collaborator(user_id="u1"))
        session.update_title("x")
        session.reset()
        assert session.collaborators == ()
        assert not session.can_undo


class TestEndToEnd:
    """The full builder scenario."""

    def test_scenario(self, session):
        gate = session.add_question(QuestionType.MULTIPLE_CHOICE)
        assert len(session.questions) == 1
        assert gate.options == ("Option 1", "Option 2")
        assert session.selected_question_id == gate.id

        session.update_question(
            dataclasses.replace(gate, title="Do you like surveys?", options=("Yes", "No"))
        )

        follow = session.add_question(QuestionType.TEXT)
        session.update_question(
            dataclasses.replace(
                follow,
                title="Why?",
                conditional_logic=ConditionalLogic(depends_on=gate.id, show_when=("Yes",)),
            )
        )
        follow = session.survey.get_question(follow.id)

        assert should_show(follow, {gate.id: "Yes"}) is True
        assert should_show(follow, {gate.id: "No"}) is False
        assert [q.id for q in session.visible_questions({gate.id: "Yes"})] == [gate.id, follow.id]

        session.remove_question(gate.id)
        assert session.survey.get_question(follow.id).conditional_logic is None
        assert isinstance(session.survey.get_question(follow.id), TextQuestion)
        assert not any(isinstance(q, MultipleChoiceQuestion) for q in session.questions)


class TestDurability:
    """Drafts and the live survey outlive the session that wrote them."""

    @pytest.fixture
    def autosave_settings(self, tmp_path):
        return Settings(drafts_path=tmp_path / "drafts.json", autosave=True, _env_file=None)

    def test_default_draft_store_is_on_disk(self, settings):
        saved = EditingSession(settings=settings).save_draft()
        assert isinstance(EditingSession(settings=settings).draft_store, FileDraftStore)
        assert EditingSession(settings=settings).get_drafts() == [saved]

    def test_live_survey_restored(self, autosave_settings):
        first = EditingSession(settings=autosave_settings)
        first.update_title("In progress")
        first.add_question("text")

        second = EditingSession(settings=autosave_settings)
        assert second.survey == first.survey
        assert not second.is_dirty
        assert not second.can_undo
        assert second.selected_question_id is None

    def test_undo_is_autosaved(self, autosave_settings):
        first = EditingSession(settings=autosave_settings)
        first.update_title("Kept")
        first.update_title("Undone")
        first.undo()
        assert EditingSession(settings=autosave_settings).survey.title == "Kept"

    def test_given_survey_replaces_working_copy(self, autosave_settings, feedback_survey):
        EditingSession(settings=autosave_settings).update_title("Old work")
        EditingSession(feedback_survey, settings=autosave_settings)
        assert EditingSession(settings=autosave_settings).survey == feedback_survey

    def test_unreadable_working_copy_starts_empty(self, autosave_settings):
        autosave_settings.resolved_working_copy_path().write_text("{broken")
        session = EditingSession(settings=autosave_settings)
        assert session.survey.title == "Untitled Survey"
        assert session.questions == ()

    def test_autosave_off(self, autosave_settings):
        session = EditingSession(settings=autosave_settings, autosave=False)
        session.update_title("Not kept")
        assert session.working_copy is None
        assert not autosave_settings.resolved_working_copy_path().exists()


class TestMarkPersisted:
    def test_remote_id_replaces_draft_id(self, feedback_session):
        feedback_session.update_title("Before draft")
        draft_id = feedback_session.save_draft().id
        feedback_session.update_title("After draft")

        feedback_session.mark_persisted("remote-1")

        assert feedback_session.survey.id == "remote-1"
        assert not feedback_session.survey.is_draft
        assert all(s.id == "remote-1" and not s.is_draft for s in feedback_session.history.past)
        assert feedback_session.draft_store.get(draft_id) is None
        assert feedback_session.draft_store.get("remote-1").title == "Before draft"
        assert feedback_session.can_undo
        feedback_session.undo()
        assert feedback_session.survey.id == "remote-1"
