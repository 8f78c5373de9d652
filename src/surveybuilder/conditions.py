"""
Conditional Visibility

Decides whether a question is shown to a respondent given the answers
collected so far, and guards the dependency graph that conditional logic
forms between questions.

Evaluation is pure and total:
    - no rule            -> shown
    - unanswered rule    -> hidden
    - multi-select       -> shown if any selected value is allowed
    - single value       -> shown if the value is allowed

A rule that points at a deleted or unknown question is simply an
unanswered dependency, so it hides the question instead of failing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from surveybuilder.errors import ConditionalLogicError
from surveybuilder.questions import ConditionalLogic, Question, options_of


logger = logging.getLogger(__name__)


def _is_empty_answer(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str) and answer == "":
        return True
    if isinstance(answer, (list, tuple, set, frozenset)) and len(answer) == 0:
        return True
    return False


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return None


def should_show(question: Question, answers: Mapping[str, Any]) -> bool:
    """
    Decide whether a question is visible for the given answers.

    Args:
        question: Question to test
        answers: Answers keyed by question id. Values are a single value
            (multiple choice, dropdown, scale, text) or a sequence of
            values (checkbox).

    Returns:
        True if the question should be rendered
    """
    logic = question.conditional_logic
    if logic is None or not logic.depends_on:
        return True

    try:
        answer = answers.get(logic.depends_on)
    except (AttributeError, TypeError):
        return False

    if _is_empty_answer(answer):
        return False

    allowed = set(logic.show_when or ())

    if isinstance(answer, (list, tuple, set, frozenset)):
        return any(_as_text(value) in allowed for value in answer)

    return _as_text(answer) in allowed


def visible_questions(questions: Iterable[Question], answers: Mapping[str, Any]) -> List[Question]:
    """Filter questions down to the visible ones, preserving order."""
    return [q for q in questions if should_show(q, answers)]


def dependency_graph(questions: Iterable[Question]) -> Dict[str, List[str]]:
    """
    Build the dependency graph of a question list.

    Returns:
        Mapping of question id -> ids it depends on (at most one per question)
    """
    graph: Dict[str, List[str]] = {}
    for question in questions:
        logic = question.conditional_logic
        graph[question.id] = [logic.depends_on] if logic and logic.depends_on else []
    return graph


def _find_cycle_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                    rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle reachable from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycle_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


def find_dependency_cycle(questions: Iterable[Question]) -> Optional[List[str]]:
    """
    Find one cycle in the conditional dependency graph.

    Returns:
        The cycle as a list of ids (first id repeated at the end),
        or None if the graph is acyclic
    """
    graph = dependency_graph(questions)
    visited: Set[str] = set()
    for question_id in graph:
        if question_id not in visited:
            cycle = _find_cycle_dfs(graph, question_id, visited, set(), [])
            if cycle:
                return cycle
    return None


def check_conditional_logic(question: Question, questions: Sequence[Question]) -> None:
    """
    Verify a question's conditional logic against the survey it is joining.

    questions is the survey's current question list; an entry with the
    same id as question is treated as the version being replaced.

    Raises:
        ConditionalLogicError: If the rule depends on the question itself,
            on an id not present in the survey, or closes a cycle
    """
    logic = question.conditional_logic
    if logic is None:
        return

    if logic.depends_on == question.id:
        raise ConditionalLogicError(question.id, ["conditional logic cannot depend on the question itself"])

    others = [q for q in questions if q.id != question.id]
    if not any(q.id == logic.depends_on for q in others):
        raise ConditionalLogicError(
            question.id, [f"conditional logic depends on unknown question {logic.depends_on!r}"]
        )

    cycle = find_dependency_cycle(others + [question])
    if cycle:
        logger.warning("Rejected conditional logic on %s: cycle %s", question.id, " -> ".join(cycle))
        raise ConditionalLogicError(
            question.id, [f"conditional logic creates a dependency cycle: {' -> '.join(cycle)}"]
        )


def default_show_when(dependency: Question) -> Tuple[str, ...]:
    """Initial allowed values when wiring a rule to dependency: its first option, if any."""
    options = options_of(dependency)
    if options:
        return (options[0],)
    return ()


def default_conditional_logic(dependency: Question) -> ConditionalLogic:
    """A rule on dependency pre-filled with default_show_when()."""
    return ConditionalLogic(depends_on=dependency.id, show_when=default_show_when(dependency))


def candidate_dependencies(question: Question, questions: Sequence[Question]) -> List[Question]:
    """
    Questions that question may depend on without creating a cycle.

    Excludes question itself and any question that already depends on it,
    directly or transitively.
    """
    graph = dependency_graph(questions)
    candidates = []
    for other in questions:
        if other.id == question.id:
            continue
        # Walk other's dependency chain; reaching question means a cycle.
        seen: Set[str] = set()
        current = other.id
        closes_cycle = False
        while current and current not in seen:
            seen.add(current)
            parents = graph.get(current, [])
            current = parents[0] if parents else None
            if current == question.id:
                closes_cycle = True
                break
        if not closes_cycle:
            candidates.append(other)
    return candidates
