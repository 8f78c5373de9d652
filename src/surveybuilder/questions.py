"""
Question Variant Model

Defines the six question shapes a survey can hold and the rules that
decide whether a question may be committed to a survey.

These are pure data classes:
    - TextQuestion, DateQuestion (no extra fields)
    - MultipleChoiceQuestion, CheckboxQuestion, DropdownQuestion (options)
    - ScaleQuestion (inclusive numeric range with optional labels)

ARCHITECTURAL RULE:
    These objects:
        - Are immutable (frozen=True); edits produce new instances
        - Carry their variant tag as a class attribute, never as data
        - Expose variant-specific fields only through the helpers below
"""

import dataclasses
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Type, Union

from surveybuilder.errors import QuestionValidationError, UnsupportedQuestionType


DEFAULT_OPTIONS: Tuple[str, ...] = ("Option 1", "Option 2")
DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 10
DEFAULT_SCALE_MIN_LABEL = "Not at all likely"
DEFAULT_SCALE_MAX_LABEL = "Extremely likely"


class QuestionType(Enum):
    """
    The closed set of question variants.

    Values are the discriminants used in exported documents and drafts.
    """

    TEXT = "text"
    MULTIPLE_CHOICE = "multiple-choice"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    SCALE = "scale"
    DATE = "date"

    @classmethod
    def parse(cls, value: Union["QuestionType", str]) -> "QuestionType":
        """
        Resolve a type tag from an enum member, a wire value or a member name.

        Examples:
            >>> QuestionType.parse("multiple-choice")
            QuestionType.MULTIPLE_CHOICE
            >>> QuestionType.parse("dropdown")
            QuestionType.DROPDOWN
            >>> QuestionType.parse("SCALE")
            QuestionType.SCALE

        Raises:
            UnsupportedQuestionType: If the tag names no variant.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip()
            for member in cls:
                if member.value == normalized.lower():
                    return member
            upper = normalized.upper().replace("-", "_")
            if upper in cls.__members__:
                return cls.__members__[upper]
        raise UnsupportedQuestionType(value)


@dataclass(frozen=True)
class ConditionalLogic:
    """
    Makes a question's visibility depend on another question's answer.

    Properties:
        depends_on:
            Id of the question whose answer is inspected.
            Must be another question of the same survey.

        show_when:
            Answer values that make the dependent question visible.
            Any single match is enough (OR semantics).
    """

    depends_on: str
    show_when: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Question:
    """
    Shared base of every question variant.

    Properties:
        id:
            Opaque identifier, stable for the question's lifetime.

        title:
            Question text shown to respondents. Must be non-empty on commit.

        description:
            Optional help text.

        required:
            Whether respondents must answer.

        conditional_logic:
            Optional visibility rule. If None the question is always shown.

    Do not instantiate this class directly; use a variant or create_question().
    """

    type: ClassVar[QuestionType]

    id: str
    title: str = ""
    description: Optional[str] = None
    required: bool = False
    conditional_logic: Optional[ConditionalLogic] = None


@dataclass(frozen=True)
class TextQuestion(Question):
    """Free-text answer."""

    type: ClassVar[QuestionType] = QuestionType.TEXT


@dataclass(frozen=True)
class OptionsQuestion(Question):
    """
    Base for variants answered by picking from a list of options.

    Duplicate option values are allowed but indistinguishable when
    matched by conditional logic.
    """

    options: Tuple[str, ...] = DEFAULT_OPTIONS


@dataclass(frozen=True)
class MultipleChoiceQuestion(OptionsQuestion):
    """Single answer picked from options."""

    type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE


@dataclass(frozen=True)
class CheckboxQuestion(OptionsQuestion):
    """Any number of answers picked from options."""

    type: ClassVar[QuestionType] = QuestionType.CHECKBOX


@dataclass(frozen=True)
class DropdownQuestion(OptionsQuestion):
    """Single answer picked from a dropdown."""

    type: ClassVar[QuestionType] = QuestionType.DROPDOWN


@dataclass(frozen=True)
class ScaleQuestion(Question):
    """
    Numeric rating over the inclusive range [min, max].

    min_label and max_label are display strings for the two ends.
    """

    type: ClassVar[QuestionType] = QuestionType.SCALE

    min: int = DEFAULT_SCALE_MIN
    max: int = DEFAULT_SCALE_MAX
    min_label: Optional[str] = None
    max_label: Optional[str] = None


@dataclass(frozen=True)
class DateQuestion(Question):
    """Calendar date answer."""

    type: ClassVar[QuestionType] = QuestionType.DATE


QUESTION_CLASSES: Dict[QuestionType, Type[Question]] = {
    QuestionType.TEXT: TextQuestion,
    QuestionType.MULTIPLE_CHOICE: MultipleChoiceQuestion,
    QuestionType.CHECKBOX: CheckboxQuestion,
    QuestionType.DROPDOWN: DropdownQuestion,
    QuestionType.SCALE: ScaleQuestion,
    QuestionType.DATE: DateQuestion,
}


def question_class(question_type: Union[QuestionType, str]) -> Type[Question]:
    """Return the variant class for a type tag."""
    return QUESTION_CLASSES[QuestionType.parse(question_type)]


def new_question_id() -> str:
    """Generate a fresh question id, unique within the process."""
    return uuid.uuid4().hex


def create_question(question_type: Union[QuestionType, str]) -> Question:
    """
    Build a new question of the given variant with editor defaults.

    The title starts empty and required is False. Options-bearing variants
    start with two placeholder options; Scale starts at 1..10 with default
    end labels.

    Args:
        question_type: QuestionType member or its wire value

    Returns:
        A new Question with a freshly generated id

    Raises:
        UnsupportedQuestionType: If the type tag is unknown
    """
    qtype = QuestionType.parse(question_type)
    cls = QUESTION_CLASSES[qtype]
    if issubclass(cls, ScaleQuestion):
        return cls(
            id=new_question_id(),
            min_label=DEFAULT_SCALE_MIN_LABEL,
            max_label=DEFAULT_SCALE_MAX_LABEL,
        )
    return cls(id=new_question_id())


def has_options(question: Question) -> bool:
    """True iff the question is MultipleChoice, Checkbox or Dropdown."""
    return isinstance(question, OptionsQuestion)


def is_scale(question: Question) -> bool:
    """True iff the question is a Scale."""
    return isinstance(question, ScaleQuestion)


def options_of(question: Question) -> Optional[Tuple[str, ...]]:
    """Options of an options-bearing question, None for every other variant."""
    if isinstance(question, OptionsQuestion):
        return question.options
    return None


def with_conditional_logic(question: Question, logic: Optional[ConditionalLogic]) -> Question:
    """Copy of question with its conditional logic replaced (None strips it)."""
    return dataclasses.replace(question, conditional_logic=logic)


def validate_question(question: Question) -> List[str]:
    """
    Collect every reason the question cannot be committed.

    Rules:
        - title must be non-blank
        - options-bearing variants need at least one option
        - Scale needs min < max
        - conditional logic must name a question other than this one

    Returns:
        List of problem descriptions (empty if valid)
    """
    problems: List[str] = []

    if not question.id:
        problems.append("question id is required")
    if not isinstance(question.title, str) or not question.title.strip():
        problems.append("title is required")

    if isinstance(question, OptionsQuestion):
        if len(question.options) == 0:
            problems.append("at least one option is required")
        elif any(not isinstance(option, str) for option in question.options):
            problems.append("options must be strings")

    if isinstance(question, ScaleQuestion):
        if not isinstance(question.min, int) or not isinstance(question.max, int):
            problems.append("scale bounds must be integers")
        elif question.min >= question.max:
            problems.append(f"scale min ({question.min}) must be less than max ({question.max})")

    logic = question.conditional_logic
    if logic is not None:
        if not logic.depends_on:
            problems.append("conditional logic must name the question it depends on")
        elif logic.depends_on == question.id:
            problems.append("conditional logic cannot depend on the question itself")

    return problems


def check_question(question: Question) -> Question:
    """
    Validate a question, returning it unchanged.

    Raises:
        QuestionValidationError: If validate_question() reports any problem
    """
    problems = validate_question(question)
    if problems:
        raise QuestionValidationError(question.id, problems)
    return question
