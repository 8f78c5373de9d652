"""
Serialization helpers for surveys and questions.

Provides JSON/YAML round-trip via an intermediate dict representation.
The dict layout is the exported document / draft record format:
camelCase keys, a "type" discriminant on every question, optional keys
omitted rather than written as null.

Reading is strict: every question is rebuilt through its variant class,
so a document with an unknown type, options on a text question, or a
missing options list is rejected instead of silently accepted.
"""
from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from surveybuilder.errors import SurveyValidationError, UnsupportedQuestionType
from surveybuilder.model import Survey, SurveyMetadata, check_survey, utcnow_iso
from surveybuilder.questions import (
    ConditionalLogic,
    OptionsQuestion,
    Question,
    ScaleQuestion,
    new_question_id,
    question_class,
)


FORMATS = ("json", "yaml")


def format_for_path(path: Union[str, Path]) -> str:
    """Pick "json" or "yaml" from a file suffix (anything else is JSON)."""
    suffix = Path(path).suffix.lower()
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return "json"


def _check_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "yml":
        fmt = "yaml"
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported document format: {fmt!r}")
    return fmt


def dump_document(data: Any, fmt: str = "json") -> str:
    if _check_format(fmt) == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def load_document(text: str, fmt: str = "json") -> Any:
    """
    Parse JSON or YAML text.

    Raises:
        SurveyValidationError: If the text does not parse
    """
    fmt = _check_format(fmt)
    try:
        if fmt == "yaml":
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SurveyValidationError([f"document is not valid {fmt.upper()}: {e}"]) from e


def logic_to_dict(logic: ConditionalLogic) -> Dict[str, Any]:
    return {"dependsOn": logic.depends_on, "showWhen": list(logic.show_when)}


def logic_from_dict(d: Any) -> Optional[ConditionalLogic]:
    if d is None:
        return None
    if not isinstance(d, dict):
        raise SurveyValidationError(["conditionalLogic must be an object"])
    depends_on = d.get("dependsOn")
    if not isinstance(depends_on, str) or not depends_on:
        raise SurveyValidationError(["conditionalLogic.dependsOn must be a non-empty string"])
    show_when = d.get("showWhen", [])
    if not isinstance(show_when, list):
        raise SurveyValidationError(["conditionalLogic.showWhen must be an array"])
    return ConditionalLogic(depends_on=depends_on, show_when=tuple(str(v) for v in show_when))


def question_to_dict(q: Question) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": q.id, "type": q.type.value, "title": q.title}
    if q.description is not None:
        d["description"] = q.description
    d["required"] = q.required
    if isinstance(q, OptionsQuestion):
        d["options"] = list(q.options)
    if isinstance(q, ScaleQuestion):
        d["min"] = q.min
        d["max"] = q.max
        if q.min_label is not None:
            d["minLabel"] = q.min_label
        if q.max_label is not None:
            d["maxLabel"] = q.max_label
    if q.conditional_logic is not None:
        d["conditionalLogic"] = logic_to_dict(q.conditional_logic)
    return d


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _iso(value: Any) -> Optional[str]:
    # Hand-written YAML turns bare dates into date/datetime objects.
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def question_from_dict(d: Any) -> Question:
    """
    Rebuild a question through its variant class.

    A missing id gets a freshly generated one.

    Raises:
        SurveyValidationError: If the dict does not describe a legal variant
    """
    if not isinstance(d, dict):
        raise SurveyValidationError(["each question must be an object"])

    label = d.get("id") or d.get("title") or "<unnamed>"
    try:
        cls = question_class(d.get("type"))
    except UnsupportedQuestionType as e:
        raise SurveyValidationError([f"question {label!r}: {e}"]) from e

    title = d.get("title", "")
    if not isinstance(title, str):
        raise SurveyValidationError([f"question {label!r}: title must be a string"])
    description = d.get("description")
    if description is not None and not isinstance(description, str):
        raise SurveyValidationError([f"question {label!r}: description must be a string"])
    required = d.get("required", False)
    if not isinstance(required, bool):
        raise SurveyValidationError([f"question {label!r}: required must be a boolean"])

    kwargs: Dict[str, Any] = {
        "id": str(d.get("id") or new_question_id()),
        "title": title,
        "description": description,
        "required": required,
        "conditional_logic": logic_from_dict(d.get("conditionalLogic")),
    }

    if issubclass(cls, OptionsQuestion):
        options = d.get("options")
        if not isinstance(options, list):
            raise SurveyValidationError([f"question {label!r}: options must be an array"])
        kwargs["options"] = tuple(str(o) for o in options)
    elif "options" in d and d["options"] is not None:
        raise SurveyValidationError([f"question {label!r}: {cls.type.value} questions cannot have options"])

    if issubclass(cls, ScaleQuestion):
        for key in ("min", "max"):
            if key in d:
                if not _is_int(d[key]):
                    raise SurveyValidationError([f"question {label!r}: scale {key} must be an integer"])
                kwargs[key] = d[key]
        kwargs["min_label"] = d.get("minLabel")
        kwargs["max_label"] = d.get("maxLabel")

    return cls(**kwargs)


def metadata_to_dict(m: SurveyMetadata) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "tags": list(m.tags),
        "isPublic": m.is_public,
        "allowAnonymousResponses": m.allow_anonymous_responses,
    }
    if m.category is not None:
        d["category"] = m.category
    if m.start_date is not None:
        d["startDate"] = m.start_date
    if m.end_date is not None:
        d["endDate"] = m.end_date
    if m.estimated_completion_time is not None:
        d["estimatedCompletionTime"] = m.estimated_completion_time
    return d


def metadata_from_dict(d: Any) -> SurveyMetadata:
    if d is None:
        return SurveyMetadata()
    if not isinstance(d, dict):
        raise SurveyValidationError(["metadata must be an object"])
    tags = d.get("tags") or []
    if not isinstance(tags, list):
        raise SurveyValidationError(["metadata.tags must be an array"])
    return SurveyMetadata(
        tags=tuple(str(t) for t in tags),
        category=d.get("category"),
        is_public=bool(d.get("isPublic", False)),
        allow_anonymous_responses=bool(d.get("allowAnonymousResponses", True)),
        start_date=_iso(d.get("startDate")),
        end_date=_iso(d.get("endDate")),
        estimated_completion_time=d.get("estimatedCompletionTime"),
    )


def survey_to_dict(s: Survey, include_draft_fields: bool = True) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "title": s.title,
        "description": s.description,
        "questions": [question_to_dict(q) for q in s.questions],
        "metadata": metadata_to_dict(s.metadata),
    }
    if include_draft_fields:
        d["id"] = s.id
        d["isDraft"] = s.is_draft
        d["created_at"] = s.created_at
        d["updated_at"] = s.updated_at
        d["lastSavedAt"] = s.last_saved_at
    return d


def survey_from_dict(d: Any) -> Survey:
    """
    Rebuild a survey record.

    Only the document shape is checked here; invariants across questions
    are checked by surveybuilder.model.check_survey().

    Raises:
        SurveyValidationError: If the record is not a survey document
    """
    if not isinstance(d, dict):
        raise SurveyValidationError(["document must be an object"])
    questions = d.get("questions", [])
    if not isinstance(questions, list):
        raise SurveyValidationError(["questions must be an array"])
    description = d.get("description")
    survey_id = d.get("id")
    return Survey(
        title=d.get("title", ""),
        description=description if isinstance(description, str) else "",
        questions=tuple(question_from_dict(q) for q in questions),
        metadata=metadata_from_dict(d.get("metadata")),
        id=str(survey_id) if survey_id else None,
        created_at=_iso(d.get("created_at")),
        updated_at=_iso(d.get("updated_at")),
        last_saved_at=_iso(d.get("lastSavedAt")),
        is_draft=bool(d.get("isDraft", True)),
    )


def survey_to_json(s: Survey) -> str:
    return json.dumps(survey_to_dict(s), sort_keys=True)


def survey_from_json(s: str) -> Survey:
    return survey_from_dict(load_document(s, "json"))


def survey_to_yaml(s: Survey) -> str:
    return yaml.safe_dump(survey_to_dict(s))


def survey_from_yaml(s: str) -> Survey:
    return survey_from_dict(load_document(s, "yaml"))


def export_survey(s: Survey, fmt: str = "json") -> str:
    """Export document: title, description, questions and metadata only."""
    return dump_document(survey_to_dict(s, include_draft_fields=False), fmt)


def import_survey(text: str, fmt: str = "json") -> Survey:
    """
    Parse and fully validate an exported document.

    The result is a fresh draft: no id, new timestamps. Question ids from
    the document are kept so conditional logic stays wired.

    Raises:
        SurveyValidationError: If the text is not a complete, valid survey
    """
    data = load_document(text, fmt)
    if not isinstance(data, dict):
        raise SurveyValidationError(["document must be an object"])
    problems: List[str] = []
    if not data.get("title"):
        problems.append("title is required")
    if not isinstance(data.get("questions"), list):
        problems.append("questions must be an array")
    if problems:
        raise SurveyValidationError(problems)

    survey = survey_from_dict(data)
    now = utcnow_iso()
    survey = dataclasses.replace(
        survey, id=None, is_draft=True, created_at=now, updated_at=now, last_saved_at=None
    )
    return check_survey(survey, complete=True)
