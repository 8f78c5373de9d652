"""
Exception hierarchy for the survey builder.

Validation problems are raised at the point of commit (a question being
written into a survey, a document being imported). Evaluation and history
navigation never raise.
"""

from typing import List, Optional


class SurveyBuilderError(Exception):
    """Base class for every error raised by this package."""
    pass


class UnsupportedQuestionType(SurveyBuilderError, ValueError):
    """Raised when a question type tag is not one of the six variants."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unsupported question type: {value!r}")


class QuestionValidationError(SurveyBuilderError, ValueError):
    """Raised when a question fails validation on commit."""

    def __init__(self, question_id: Optional[str], problems: List[str]):
        self.question_id = question_id
        self.problems = list(problems)
        label = question_id or "<new question>"
        super().__init__(f"Invalid question {label}: {'; '.join(self.problems)}")


class ConditionalLogicError(QuestionValidationError):
    """Raised when conditional logic points at itself, nowhere, or closes a cycle."""
    pass


class SurveyValidationError(SurveyBuilderError, ValueError):
    """Raised when a whole survey (or an imported document) is invalid."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(f"Invalid survey: {'; '.join(self.problems)}")


class DraftNotFound(SurveyBuilderError, KeyError):
    """Raised when loading a draft id that is not in the store."""

    def __init__(self, draft_id: str):
        self.draft_id = draft_id
        super().__init__(draft_id)

    def __str__(self) -> str:
        return f"No draft with id {self.draft_id!r}"


class SaveError(SurveyBuilderError):
    """Raised when the remote repository fails to persist a survey."""
    pass
