"""
Survey Analyzer: read-only diagnostics for a survey.

This module provides lightweight analysis of Survey objects:
    - Question inventory by type
    - Conditional logic wiring (dangling references, self references, cycles)
    - Rules that can never be satisfied
    - Validation problems that would block an import
    - Warning flags for the editor

IMPORTANT: This module does NOT modify the survey.
It only produces read-only reports.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from surveybuilder.conditions import find_dependency_cycle
from surveybuilder.model import Survey, validate_survey
from surveybuilder.questions import options_of


@dataclass
class SurveyReport:
    """Analysis report for a survey."""

    survey_title: str
    total_questions: int = 0
    questions_by_type: Dict[str, int] = field(default_factory=dict)
    required_questions: int = 0

    # Conditional logic
    conditional_questions: int = 0
    dangling_references: Dict[str, str] = field(default_factory=dict)  # question id -> missing id
    self_references: Set[str] = field(default_factory=set)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None
    unsatisfiable_rules: Set[str] = field(default_factory=set)
    max_dependency_depth: int = 0

    # Options
    duplicate_options: Dict[str, List[str]] = field(default_factory=dict)

    # Validation and warnings
    problems: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.problems

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _dependency_depth(question_id: str, parents: Dict[str, str]) -> int:
    depth = 0
    seen = {question_id}
    current = parents.get(question_id)
    while current is not None and current not in seen:
        depth += 1
        seen.add(current)
        current = parents.get(current)
    return depth


def analyze_survey(survey: Survey) -> SurveyReport:
    """
    Perform analysis of a Survey.

    Checks for:
    - Question counts by type and required flag
    - Conditional logic references (dangling, self, cyclic)
    - Rules whose allowed values can never occur
    - Duplicate options
    - Full validation problems

    Returns a SurveyReport with metrics and warnings.
    """
    report = SurveyReport(survey_title=survey.title)
    report.total_questions = len(survey.questions)

    by_id = {q.id: q for q in survey.questions}
    type_counts = Counter(q.type.value for q in survey.questions)
    report.questions_by_type = dict(type_counts)
    report.required_questions = sum(1 for q in survey.questions if q.required)

    # =========================================================================
    # 1. CONDITIONAL LOGIC
    # =========================================================================

    parents: Dict[str, str] = {}
    for question in survey.questions:
        logic = question.conditional_logic
        if logic is None:
            continue
        report.conditional_questions += 1

        if logic.depends_on == question.id:
            report.self_references.add(question.id)
            continue

        dependency = by_id.get(logic.depends_on)
        if dependency is None:
            report.dangling_references[question.id] = logic.depends_on
            continue
        parents[question.id] = logic.depends_on

        if not logic.show_when:
            report.unsatisfiable_rules.add(question.id)
            continue
        options = options_of(dependency)
        if options is not None and not set(logic.show_when) & set(options):
            report.unsatisfiable_rules.add(question.id)

    cycle = find_dependency_cycle(
        q for q in survey.questions if q.id not in report.self_references
    )
    if cycle:
        report.has_cycles = True
        report.cycle_example = cycle

    if parents:
        report.max_dependency_depth = max(_dependency_depth(qid, parents) for qid in parents)

    # =========================================================================
    # 2. OPTIONS
    # =========================================================================

    for question in survey.questions:
        options = options_of(question)
        if not options:
            continue
        duplicates = sorted(o for o, n in Counter(options).items() if n > 1)
        if duplicates:
            report.duplicate_options[question.id] = duplicates

    # =========================================================================
    # 3. VALIDATION
    # =========================================================================

    report.problems = validate_survey(survey, complete=True)

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.total_questions == 0:
        report.add_warning("Survey has no questions")

    if report.dangling_references:
        report.add_warning(
            f"Conditional logic references missing questions: "
            f"{', '.join(sorted(report.dangling_references))}"
        )

    if report.self_references:
        report.add_warning(
            f"Questions depending on themselves: {', '.join(sorted(report.self_references))}"
        )

    if report.has_cycles:
        report.add_warning(f"Dependency cycle detected: {' -> '.join(report.cycle_example)}")

    if report.unsatisfiable_rules:
        report.add_warning(
            f"Questions that can never be shown: {', '.join(sorted(report.unsatisfiable_rules))}"
        )

    if report.duplicate_options:
        report.add_warning(
            f"Duplicate options in: {', '.join(sorted(report.duplicate_options))}"
        )

    if report.problems:
        report.add_warning(f"{len(report.problems)} validation problem(s)")

    return report
