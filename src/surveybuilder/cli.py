"""
Command line interface.

CLI Usage:
    $ surveybuilder validate survey.json
    $ surveybuilder analyze survey.yaml
    $ surveybuilder preview survey.json -a likes-surveys=Yes -a channels=Other
    $ surveybuilder convert survey.json survey.yaml
    $ surveybuilder drafts list
    $ surveybuilder drafts import survey.json
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from surveybuilder import __version__
from surveybuilder.analyzer import analyze_survey
from surveybuilder.conditions import visible_questions
from surveybuilder.config import get_settings
from surveybuilder.drafts import open_draft_store
from surveybuilder.errors import DraftNotFound, SurveyBuilderError, SurveyValidationError
from surveybuilder.model import Survey
from surveybuilder.serialization import (
    export_survey,
    format_for_path,
    import_survey,
    load_document,
    survey_from_dict,
)
from surveybuilder.session import EditingSession


logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _read(path: str) -> Tuple[str, str]:
    return Path(path).read_text(encoding="utf-8"), format_for_path(path)


def _fail(message: str, problems: Optional[List[str]] = None) -> None:
    click.echo(click.style(f"[ERROR] {message}", fg="red"), err=True)
    for problem in problems or []:
        click.echo(f"  - {problem}", err=True)
    sys.exit(1)


def _load_valid(path: str) -> Survey:
    text, fmt = _read(path)
    try:
        return import_survey(text, fmt)
    except SurveyValidationError as e:
        _fail(f"{path} is not a valid survey", e.problems)


def _parse_answers(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    answers: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected QUESTION_ID=VALUE, got {pair!r}", param_hint="--answer")
        question_id, value = pair.split("=", 1)
        if question_id in answers:
            # Repeating an id builds a multi-select answer
            existing = answers[question_id]
            answers[question_id] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            answers[question_id] = value
    return answers


def _describe(survey: Survey) -> str:
    label = survey.title or "<untitled>"
    return f"{label} ({len(survey.questions)} question{'s' if len(survey.questions) != 1 else ''})"


@click.group()
@click.version_option(version=__version__, prog_name="surveybuilder")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output.")
def cli(verbose: bool):
    """
    Survey Builder - validate, inspect and convert survey documents,
    and manage local drafts.
    """
    _configure_logging(verbose)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def validate(path: str):
    """Check that a JSON/YAML survey document can be imported."""
    survey = _load_valid(path)
    click.echo(click.style(f"[OK] {_describe(survey)}", fg="green"))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def analyze(path: str):
    """Print a diagnostics report for a survey document."""
    text, fmt = _read(path)
    try:
        survey = survey_from_dict(load_document(text, fmt))
    except SurveyValidationError as e:
        _fail(f"{path} is not a survey document", e.problems)

    report = analyze_survey(survey)
    click.echo(f"Survey: {report.survey_title}")
    click.echo(f"  Questions:             {report.total_questions}")
    for qtype, count in sorted(report.questions_by_type.items()):
        click.echo(f"    {qtype}: {count}")
    click.echo(f"  Required:              {report.required_questions}")
    click.echo(f"  Conditional:           {report.conditional_questions}")
    click.echo(f"  Max dependency depth:  {report.max_dependency_depth}")
    click.echo(f"  Has cycles:            {'YES' if report.has_cycles else 'NO'}")

    if report.problems:
        click.echo("Problems:")
        for problem in report.problems:
            click.echo(f"  - {problem}")
    if report.warnings:
        click.echo("Warnings:")
        for i, warning in enumerate(report.warnings, 1):
            click.echo(f"  {i}. {warning}")
    else:
        click.echo(click.style("No warnings", fg="green"))

    sys.exit(0 if report.is_valid else 1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-a", "--answer", "answer_pairs",
    multiple=True,
    metavar="QUESTION_ID=VALUE",
    help="An answer; repeat an id to give several checkbox values.",
)
def preview(path: str, answer_pairs: Tuple[str, ...]):
    """List the questions a respondent with these answers would see."""
    survey = _load_valid(path)
    answers = _parse_answers(answer_pairs)
    shown = visible_questions(survey.questions, answers)
    for number, question in enumerate(shown, 1):
        click.echo(f"{number}. [{question.type.value}] {question.title} ({question.id})")
    hidden = len(survey.questions) - len(shown)
    if hidden:
        click.echo(click.style(f"{hidden} question(s) hidden", fg="yellow"))


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("destination", type=click.Path(dir_okay=False))
def convert(source: str, destination: str):
    """Re-encode a survey document; formats follow the file suffixes."""
    survey = _load_valid(source)
    Path(destination).write_text(export_survey(survey, format_for_path(destination)), encoding="utf-8")
    click.echo(f"Wrote {destination}")


@cli.group()
@click.option(
    "--store", "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Draft file (default: SURVEYBUILDER_DRAFTS_PATH or ~/.surveybuilder/drafts.json).",
)
@click.pass_context
def drafts(ctx: click.Context, store_path: Optional[str]):
    """Manage locally stored drafts."""
    ctx.obj = open_draft_store(store_path)


@drafts.command("list")
@click.pass_obj
def list_drafts(store):
    """List stored drafts."""
    stored = store.list()
    if not stored:
        click.echo("No drafts")
        return
    for survey in stored:
        click.echo(f"{survey.id}  {_describe(survey)}  saved {survey.last_saved_at or '-'}")


@drafts.command("show")
@click.argument("draft_id")
@click.option("--format", "fmt", type=click.Choice(["json", "yaml"]), default="json")
@click.pass_obj
def show_draft(store, draft_id: str, fmt: str):
    """Print a draft as an export document."""
    session = EditingSession(draft_store=store, autosave=False)
    try:
        survey = session.load_draft(draft_id)
    except DraftNotFound as e:
        _fail(str(e))
    click.echo(export_survey(survey, fmt))


@drafts.command("delete")
@click.argument("draft_id")
@click.pass_obj
def delete_draft(store, draft_id: str):
    """Delete a draft (unknown ids are ignored)."""
    EditingSession(draft_store=store, autosave=False).delete_draft(draft_id)
    click.echo(f"Deleted {draft_id}")


@drafts.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_draft(store, path: str):
    """Import a survey document and store it as a new draft."""
    text, fmt = _read(path)
    session = EditingSession(draft_store=store, autosave=False)
    try:
        session.import_document(text, fmt)
    except SurveyValidationError as e:
        _fail(f"{path} is not a valid survey", e.problems)
    saved = session.save_draft()
    click.echo(f"Saved draft {saved.id}")


def main():
    """Console script entry point."""
    try:
        cli()
    except SurveyBuilderError as e:
        click.echo(click.style(f"[ERROR] {e}", fg="red"), err=True)
        logger.debug("Unhandled error", exc_info=True)
        sys.exit(1)
