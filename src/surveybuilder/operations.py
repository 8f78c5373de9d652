"""
Copy-on-write survey operations.

Every function takes a Survey and returns a new Survey; the input is never
modified. Each result carries a refreshed updated_at timestamp.

History, selection and the dirty flag are the session's business
(see surveybuilder.session); nothing here knows about them.
"""
from __future__ import annotations

import dataclasses
from typing import Any

from surveybuilder.model import Survey, SurveyMetadata, utcnow_iso
from surveybuilder.questions import Question, with_conditional_logic


_METADATA_FIELDS = {f.name for f in dataclasses.fields(SurveyMetadata)}


def _touch(survey: Survey, **changes: Any) -> Survey:
    return dataclasses.replace(survey, updated_at=utcnow_iso(), **changes)


def update_title(survey: Survey, title: str) -> Survey:
    return _touch(survey, title=title)


def update_description(survey: Survey, description: str) -> Survey:
    return _touch(survey, description=description)


def update_metadata(survey: Survey, **fields: Any) -> Survey:
    """
    Shallow-merge fields into the survey metadata.

    Raises:
        TypeError: If a field name is not a SurveyMetadata attribute
    """
    unknown = set(fields) - _METADATA_FIELDS
    if unknown:
        raise TypeError(f"Unknown metadata field(s): {', '.join(sorted(unknown))}")
    if "tags" in fields and fields["tags"] is not None:
        fields["tags"] = tuple(fields["tags"])
    return _touch(survey, metadata=dataclasses.replace(survey.metadata, **fields))


def add_tag(survey: Survey, tag: str) -> Survey:
    """Append a trimmed tag; blank or already present tags leave the survey unchanged."""
    tag = tag.strip()
    if not tag or tag in survey.metadata.tags:
        return survey
    return update_metadata(survey, tags=survey.metadata.tags + (tag,))


def remove_tag(survey: Survey, tag: str) -> Survey:
    if tag not in survey.metadata.tags:
        return survey
    return update_metadata(survey, tags=tuple(t for t in survey.metadata.tags if t != tag))


def append_question(survey: Survey, question: Question) -> Survey:
    return _touch(survey, questions=survey.questions + (question,))


def replace_question(survey: Survey, question: Question) -> Survey:
    """Swap in question for the entry with the same id; no match returns survey unchanged."""
    index = survey.index_of(question.id)
    if index == -1:
        return survey
    questions = list(survey.questions)
    questions[index] = question
    return _touch(survey, questions=tuple(questions))


def remove_question(survey: Survey, question_id: str) -> Survey:
    """
    Remove a question and strip every rule that depended on it.

    Dangling conditional logic is removed, not retargeted.
    """
    remaining = []
    for question in survey.questions:
        if question.id == question_id:
            continue
        logic = question.conditional_logic
        if logic is not None and logic.depends_on == question_id:
            question = with_conditional_logic(question, None)
        remaining.append(question)
    return _touch(survey, questions=tuple(remaining))


def clamp_index(index: int, length: int) -> int:
    """Clamp index into [0, length - 1]; length must be positive."""
    return max(0, min(index, length - 1))


def reorder_questions(survey: Survey, from_index: int, to_index: int) -> Survey:
    """
    Move the question at from_index to to_index, shifting the ones between.

    Out-of-range indices are clamped to the nearest valid position.
    An empty survey is returned with only its timestamp refreshed.
    """
    count = len(survey.questions)
    if count == 0:
        return _touch(survey)
    from_index = clamp_index(from_index, count)
    to_index = clamp_index(to_index, count)
    questions = list(survey.questions)
    moved = questions.pop(from_index)
    questions.insert(to_index, moved)
    return _touch(survey, questions=tuple(questions))


def assign_id(survey: Survey, survey_id: str) -> Survey:
    return dataclasses.replace(survey, id=survey_id)
