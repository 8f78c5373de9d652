"""
Tests for the question variant model.

These tests verify:
    - Type tag parsing
    - Defaults produced by create_question
    - Variant predicates
    - Commit-time validation
"""

import dataclasses

import pytest

from surveybuilder.errors import QuestionValidationError, UnsupportedQuestionType
from surveybuilder.questions import (
    CheckboxQuestion,
    ConditionalLogic,
    DateQuestion,
    DropdownQuestion,
    MultipleChoiceQuestion,
    QuestionType,
    ScaleQuestion,
    TextQuestion,
    check_question,
    create_question,
    has_options,
    is_scale,
    options_of,
    question_class,
    validate_question,
    with_conditional_logic,
)


OPTION_TYPES = {QuestionType.MULTIPLE_CHOICE, QuestionType.CHECKBOX, QuestionType.DROPDOWN}


class TestQuestionType:
    """Test parsing of type tags."""

    def test_parse_wire_value(self):
        """Should accept the document discriminant."""
        assert QuestionType.parse("multiple-choice") is QuestionType.MULTIPLE_CHOICE

    def test_parse_member_name(self):
        """Should accept member names in any case."""
        assert QuestionType.parse("MULTIPLE_CHOICE") is QuestionType.MULTIPLE_CHOICE
        assert QuestionType.parse("scale") is QuestionType.SCALE
        assert QuestionType.parse("Date") is QuestionType.DATE

    def test_parse_member(self):
        assert QuestionType.parse(QuestionType.TEXT) is QuestionType.TEXT

    @pytest.mark.parametrize("value", ["ranking", "", None, 3])
    def test_parse_unknown(self, value):
        """Should raise UnsupportedQuestionType for anything else."""
        with pytest.raises(UnsupportedQuestionType):
            QuestionType.parse(value)

    def test_question_class(self):
        assert question_class("checkbox") is CheckboxQuestion
        assert question_class(QuestionType.DATE) is DateQuestion


class TestCreateQuestion:
    """Test construction with editor defaults."""

    @pytest.mark.parametrize("qtype", list(QuestionType))
    def test_common_defaults(self, qtype):
        """Should start untitled, optional and unconditional."""
        question = create_question(qtype)
        assert question.type is qtype
        assert question.title == ""
        assert question.required is False
        assert question.description is None
        assert question.conditional_logic is None

    @pytest.mark.parametrize("qtype", list(QuestionType))
    def test_predicates_match_type(self, qtype):
        """has_options / is_scale should agree with the type tag."""
        question = create_question(qtype)
        assert has_options(question) == (qtype in OPTION_TYPES)
        assert is_scale(question) == (qtype is QuestionType.SCALE)

    def test_ids_are_unique(self):
        """Should never reuse an id within the process."""
        ids = {create_question(qtype).id for qtype in QuestionType for _ in range(50)}
        assert len(ids) == 50 * len(QuestionType)

    @pytest.mark.parametrize("qtype", sorted(OPTION_TYPES, key=lambda t: t.value))
    def test_option_defaults(self, qtype):
        """Options-bearing variants start with two placeholders."""
        question = create_question(qtype)
        assert question.options == ("Option 1", "Option 2")

    def test_scale_defaults(self):
        question = create_question(QuestionType.SCALE)
        assert isinstance(question, ScaleQuestion)
        assert (question.min, question.max) == (1, 10)
        assert question.min_label == "Not at all likely"
        assert question.max_label == "Extremely likely"

    def test_text_and_date_have_no_options(self):
        """Text and Date never carry options."""
        for qtype in (QuestionType.TEXT, QuestionType.DATE):
            question = create_question(qtype)
            assert options_of(question) is None
            assert not hasattr(question, "options")

    def test_create_from_string(self):
        assert isinstance(create_question("dropdown"), DropdownQuestion)

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedQuestionType):
            create_question("matrix")


class TestImmutability:
    """Questions are frozen; edits produce copies."""

    def test_cannot_assign(self):
        question = TextQuestion(id="q1", title="Name?")
        with pytest.raises(dataclasses.FrozenInstanceError):
            question.title = "Other"

    def test_with_conditional_logic(self):
        """Should return a copy with the rule set or removed."""
        question = TextQuestion(id="q2", title="Why?")
        logic = ConditionalLogic(depends_on="q1", show_when=("Yes",))
        wired = with_conditional_logic(question, logic)
        assert wired.conditional_logic == logic
        assert question.conditional_logic is None
        assert with_conditional_logic(wired, None).conditional_logic is None


class TestValidation:
    """Test commit-time validation rules."""

    def test_valid_question(self):
        question = MultipleChoiceQuestion(id="q1", title="Pick one", options=("A",))
        assert validate_question(question) == []
        assert check_question(question) is question

    @pytest.mark.parametrize("title", ["", "   "])
    def test_blank_title(self, title):
        problems = validate_question(TextQuestion(id="q1", title=title))
        assert problems == ["title is required"]

    def test_new_question_needs_title(self):
        """A freshly created question cannot be committed until titled."""
        with pytest.raises(QuestionValidationError) as excinfo:
            check_question(create_question(QuestionType.TEXT))
        assert "title is required" in excinfo.value.problems

    def test_empty_options(self):
        question = CheckboxQuestion(id="q1", title="Pick", options=())
        assert validate_question(question) == ["at least one option is required"]

    def test_duplicate_options_allowed(self):
        question = DropdownQuestion(id="q1", title="Pick", options=("A", "A"))
        assert validate_question(question) == []

    @pytest.mark.parametrize("bounds", [(5, 5), (10, 1)])
    def test_scale_bounds(self, bounds):
        """Scale min must be strictly less than max."""
        question = ScaleQuestion(id="q1", title="Rate", min=bounds[0], max=bounds[1])
        problems = validate_question(question)
        assert len(problems) == 1
        assert "must be less than max" in problems[0]

    def test_self_dependency(self):
        question = TextQuestion(
            id="q1", title="Loop", conditional_logic=ConditionalLogic(depends_on="q1", show_when=("x",))
        )
        assert validate_question(question) == ["conditional logic cannot depend on the question itself"]

    def test_check_collects_all_problems(self):
        """Should report every problem at once."""
        question = ScaleQuestion(id="q1", title="", min=3, max=2)
        with pytest.raises(QuestionValidationError) as excinfo:
            check_question(question)
        assert excinfo.value.question_id == "q1"
        assert len(excinfo.value.problems) == 2
