"""
Demo: Build the example feedback survey in an editing session, exercise
undo/redo and drafts, preview conditional visibility, and print the
analysis report.
"""

from surveybuilder.analyzer import analyze_survey
from surveybuilder.drafts import InMemoryDraftStore
from surveybuilder.examples import build_feedback_survey
from surveybuilder.questions import QuestionType
from surveybuilder.session import EditingSession


def print_report(report):
    """Pretty-print a SurveyReport."""
    print()
    print("=" * 70)
    print(f"SURVEY ANALYSIS REPORT: {report.survey_title}")
    print("=" * 70)
    print()

    print("QUESTIONS")
    print(f"  Total:                 {report.total_questions}")
    for qtype, count in sorted(report.questions_by_type.items()):
        print(f"    {qtype}: {count}")
    print(f"  Required:              {report.required_questions}")
    print()

    print("CONDITIONAL LOGIC")
    print(f"  Conditional questions: {report.conditional_questions}")
    print(f"  Max dependency depth:  {report.max_dependency_depth}")
    print(f"  Has cycles:            {'YES' if report.has_cycles else 'NO'}")
    print()

    if report.warnings:
        print("WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("NO WARNINGS - Survey looks clean!")
    print()


if __name__ == "__main__":
    session = EditingSession(build_feedback_survey(), draft_store=InMemoryDraftStore(), autosave=False)

    # A few edits, then walk the history
    session.update_title("Customer Feedback (spring)")
    extra = session.add_question(QuestionType.DROPDOWN)
    print(f"Added {extra.type.value} question {extra.id}, selected={session.selected_question_id}")
    session.undo()
    print(f"After undo: {len(session.questions)} questions, can_redo={session.can_redo}")
    session.redo()
    print(f"After redo: {len(session.questions)} questions")
    session.remove_question(extra.id)

    # Conditional visibility
    for answers in ({"likes-surveys": "Yes"}, {"likes-surveys": "No", "channels": ["Friend", "Other"]}):
        shown = [q.id for q in session.visible_questions(answers)]
        print(f"Answers {answers} -> {shown}")

    saved = session.save_draft()
    print(f"Draft saved as {saved.id} at {saved.last_saved_at}")

    print_report(analyze_survey(session.survey))

    with open("example_survey_output.yaml", "w") as f:
        f.write(session.export_document("yaml"))
    print("Survey exported to example_survey_output.yaml")
