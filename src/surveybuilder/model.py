"""
Survey Aggregate

Defines the root container of the editing model.

    - SurveyMetadata (tags, category, visibility flags, date range)
    - Survey (ordered questions plus metadata and timestamps)

ARCHITECTURAL RULE:
    Survey is immutable (frozen=True).
    Every edit produces a new Survey (see surveybuilder.operations),
    which is what lets the undo history keep plain references as snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from surveybuilder.conditions import find_dependency_cycle
from surveybuilder.errors import SurveyValidationError
from surveybuilder.questions import Question, validate_question


DEFAULT_SURVEY_TITLE = "Untitled Survey"


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SurveyMetadata:
    """
    Descriptive settings of a survey.

    Properties:
        tags: Free-form labels, unique, in insertion order
        category: Optional category name
        is_public: Whether the survey is listed publicly
        allow_anonymous_responses: Whether respondents may stay anonymous
        start_date / end_date: Optional ISO dates bounding collection
        estimated_completion_time: Free-form estimate shown to respondents
    """

    tags: Tuple[str, ...] = ()
    category: Optional[str] = None
    is_public: bool = False
    allow_anonymous_responses: bool = True
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    estimated_completion_time: Optional[str] = None


@dataclass(frozen=True)
class Survey:
    """
    Root aggregate of the editing model.

    Properties:
        title:
            Survey title. Must be non-empty.

        description:
            Free text shown above the questions.

        questions:
            Ordered questions. Order is user-controlled and meaningful.

        metadata:
            SurveyMetadata

        id:
            Absent until the survey is first persisted (draft or remote).

        created_at / updated_at / last_saved_at:
            ISO-8601 timestamps. last_saved_at is set by draft saves.

        is_draft:
            True while the survey only exists as local work in progress.

    INVARIANTS:
        - Question ids are unique within a survey
        - conditional_logic.depends_on names another question of the survey
        - The dependency graph is acyclic
    """

    title: str = DEFAULT_SURVEY_TITLE
    description: str = ""
    questions: Tuple[Question, ...] = ()
    metadata: SurveyMetadata = field(default_factory=SurveyMetadata)
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_saved_at: Optional[str] = None
    is_draft: bool = True

    def get_question(self, question_id: str) -> Optional[Question]:
        """
        Retrieve a question by id.

        Returns:
            Question or None if not found
        """
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def index_of(self, question_id: str) -> int:
        """Position of a question, or -1 if absent."""
        for index, question in enumerate(self.questions):
            if question.id == question_id:
                return index
        return -1

    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]


def new_survey(title: Optional[str] = None) -> Survey:
    """An empty draft survey stamped with the current time."""
    now = utcnow_iso()
    return Survey(
        title=title or DEFAULT_SURVEY_TITLE,
        created_at=now,
        updated_at=now,
    )


def validate_survey(survey: Survey, complete: bool = True) -> List[str]:
    """
    Collect every invariant violation of a survey.

    Structural checks always run: unique question ids, resolvable and
    acyclic conditional logic. With complete=True each question must also
    pass validate_question() and the survey title must be non-empty; this
    is the level required of imported documents. Drafts are checked with
    complete=False since a freshly added question has an empty title.

    Returns:
        List of problem descriptions (empty if valid)
    """
    problems: List[str] = []

    if complete and (not isinstance(survey.title, str) or not survey.title.strip()):
        problems.append("survey title is required")

    seen = set()
    for question in survey.questions:
        if question.id in seen:
            problems.append(f"duplicate question id {question.id!r}")
        seen.add(question.id)

    for question in survey.questions:
        if complete:
            for problem in validate_question(question):
                problems.append(f"question {question.id!r}: {problem}")
        logic = question.conditional_logic
        if logic is None:
            continue
        if logic.depends_on == question.id:
            if not complete:
                problems.append(f"question {question.id!r}: conditional logic cannot depend on the question itself")
        elif logic.depends_on not in seen:
            problems.append(
                f"question {question.id!r}: conditional logic depends on unknown question {logic.depends_on!r}"
            )

    # Self-references are reported above.
    linked = [
        q for q in survey.questions
        if q.conditional_logic is None or q.conditional_logic.depends_on != q.id
    ]
    cycle = find_dependency_cycle(linked)
    if cycle:
        problems.append(f"conditional logic dependency cycle: {' -> '.join(cycle)}")

    return problems


def check_survey(survey: Survey, complete: bool = True) -> Survey:
    """
    Validate a survey, returning it unchanged.

    Raises:
        SurveyValidationError: If validate_survey() reports any problem
    """
    problems = validate_survey(survey, complete=complete)
    if problems:
        raise SurveyValidationError(problems)
    return survey
