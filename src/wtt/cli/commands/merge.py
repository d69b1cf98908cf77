"""Merge command - merge a worktree's branch into the main branch."""

import os

import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.json_output import emit_json
from wtt.cli.json_schemas import IssueInfo, MergeCheckResponse, PredictionInfo
from wtt.cli.output import format_hint, user_output
from wtt.core.context import WttContext
from wtt.core.conflict_predictor import ConflictPrediction
from wtt.core.locator import detect_current_worktree
from wtt.core.merge_orchestrator import (
    ConfirmationKind,
    Conflicted,
    Failed,
    MergeOptions,
    MergeOrchestrator,
    MergeOutcome,
    NeedsConfirmation,
    Preview,
    Succeeded,
    ValidationFailed,
    exit_code_for,
)
from wtt.core.validation import ValidationIssue

AUTO_CONFIRM_ENV = "WTT_AUTO_CONFIRM"

_RISK_COLORS = {"high": "red", "medium": "yellow", "low": "green"}


def auto_confirm_from_env() -> bool:
    return os.environ.get(AUTO_CONFIRM_ENV, "").strip().lower() in ("1", "true", "yes")


def render_predictions(predictions: list[ConflictPrediction]) -> None:
    if not predictions:
        user_output(click.style("✓", fg="green") + " No conflicts predicted")
        return

    user_output(f"{len(predictions)} file(s) changed on both branches:")
    for prediction in predictions:
        risk = click.style(f"{prediction.risk:<6}", fg=_RISK_COLORS[prediction.risk])
        user_output(f"  {risk} {prediction.file}  ({prediction.reason})")


def render_issue(issue: ValidationIssue) -> None:
    if issue.blocking:
        user_output(click.style("✗ ", fg="red") + issue.message)
    else:
        user_output(click.style("⚠ ", fg="yellow") + issue.message)
    if issue.detail:
        user_output(format_hint(issue.detail))


def render_outcome(outcome: MergeOutcome) -> None:
    """Print a human-readable summary of a final outcome."""
    if isinstance(outcome, Succeeded):
        if outcome.pushed:
            user_output(click.style("✓", fg="green") + f" Pushed '{outcome.branch}'")
        user_output(
            click.style("✓", fg="green")
            + f" Merged '{outcome.branch}' into '{outcome.main_branch}'"
        )
        if outcome.cleaned_up:
            user_output(
                click.style("✓", fg="green") + f" Removed worktree '{outcome.worktree_name}'"
            )
        for warning in outcome.warnings:
            user_output(click.style("⚠ ", fg="yellow") + warning)
        if outcome.snapshot_id is not None:
            user_output(click.style(f"  Snapshot: {outcome.snapshot_id}", fg="bright_black"))
    elif isinstance(outcome, Conflicted):
        count = outcome.count if outcome.count is not None else "unknown number of"
        user_output(
            click.style("✗", fg="red")
            + f" Merging '{outcome.branch}' into '{outcome.main_branch}' stopped with"
            + f" {count} conflicted file(s):"
        )
        for path in outcome.paths:
            user_output(f"    {path}")
        user_output(format_hint("Resolve the files, then 'git add' them and 'git commit'"))
        user_output(format_hint("Or run 'wt merge-abort' to cancel the merge"))
        for warning in outcome.warnings:
            user_output(click.style("⚠ ", fg="yellow") + warning)
        if outcome.snapshot_id is not None:
            restore_cmd = f"wt backup restore {outcome.snapshot_id}"
            user_output(format_hint(f"To return to the pre-merge state: {restore_cmd}"))
    elif isinstance(outcome, ValidationFailed):
        user_output(click.style("Error: ", fg="red") + "Cannot merge:")
        for issue in outcome.issues:
            render_issue(issue)
    elif isinstance(outcome, Preview):
        for issue in outcome.warnings:
            render_issue(issue)
        user_output(f"Merge preview: '{outcome.branch}' into '{outcome.main_branch}'")
        render_predictions(outcome.predictions)
    elif isinstance(outcome, Failed):
        user_output(click.style("Error: ", fg="red") + outcome.message)
    elif isinstance(outcome, NeedsConfirmation):
        user_output(click.style("Error: ", fg="red") + f"Unanswered question: {outcome.message}")


def run_with_confirmations(
    orchestrator: MergeOrchestrator, worktree_name: str, options: MergeOptions
) -> MergeOutcome:
    """Run the orchestrator, asking the user at each NeedsConfirmation."""
    decisions: dict[ConfirmationKind, bool] = {}
    outcome = orchestrator.run(worktree_name, options, decisions)
    while isinstance(outcome, NeedsConfirmation):
        if outcome.kind in decisions:
            # The same question twice means the answer was not applied
            break
        files = outcome.context.get("files")
        if files:
            user_output(click.style("⚠ ", fg="yellow") + f"Changed on both branches: {files}")
        decisions[outcome.kind] = click.confirm(outcome.message, default=True, err=True)
        outcome = orchestrator.run(worktree_name, options, decisions)
    return outcome


def emit_check_json(outcome: MergeOutcome, main_branch: str) -> None:
    if isinstance(outcome, Preview):
        response = MergeCheckResponse(
            status="preview",
            branch=outcome.branch,
            main_branch=outcome.main_branch,
            predictions=[PredictionInfo.from_prediction(p) for p in outcome.predictions],
            issues=[IssueInfo.from_issue(i) for i in outcome.warnings],
        )
        emit_json(response)
    elif isinstance(outcome, ValidationFailed):
        response = MergeCheckResponse(
            status="blocked",
            branch=None,
            main_branch=main_branch,
            predictions=[],
            issues=[IssueInfo.from_issue(i) for i in outcome.issues],
        )
        emit_json(response)
    else:
        render_outcome(outcome)


@click.command("merge")
@click.argument("name", required=False)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Skip conflict prediction and merge despite uncommitted changes.",
)
@click.option("--check", is_flag=True, help="Only predict conflicts; do not merge.")
@click.option(
    "--delete/--no-delete",
    "delete",
    default=None,
    help="Remove the worktree and branch after a successful merge.",
)
@click.option("-y", "--yes", is_flag=True, help="Answer yes to every confirmation.")
@click.option("--json", "output_json", is_flag=True, help="Output JSON (with --check).")
@click.pass_obj
def merge_cmd(
    ctx: WttContext,
    name: str | None,
    force: bool,
    check: bool,
    delete: bool | None,
    yes: bool,
    output_json: bool,
) -> None:
    """Merge worktree NAME's branch into the main branch.

    NAME defaults to the worktree containing the current directory. Exit codes:
    0 merged (or previewed), 1 merge conflicts, 2 anything else.
    """
    # Exit code 1 is reserved for merge conflicts
    if output_json and not check:
        fail("--json is only supported with --check", exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    if name is None:
        repo = Ensure.in_repo(ctx)
        name = detect_current_worktree(repo, ctx.cwd)
        if name is None:
            fail(
                "No worktree name given and the current directory is not inside a worktree",
                exit_code=ENVIRONMENT_ERROR_EXIT_CODE,
            )

    options = MergeOptions(
        force=force,
        check=check,
        delete=delete is True,
        no_delete=delete is False,
        auto_confirm=yes or auto_confirm_from_env(),
    )
    orchestrator = MergeOrchestrator(ctx)

    if check:
        user_output(f"Checking worktree '{name}'...")
        outcome = orchestrator.run(name, options)
        if output_json:
            emit_check_json(outcome, ctx.config.main_branch)
        else:
            render_outcome(outcome)
    else:
        user_output(f"Merging worktree '{name}' into '{ctx.config.main_branch}'...")
        outcome = run_with_confirmations(orchestrator, name, options)
        render_outcome(outcome)

    exit_code = exit_code_for(outcome)
    if exit_code != 0:
        raise SystemExit(exit_code)
