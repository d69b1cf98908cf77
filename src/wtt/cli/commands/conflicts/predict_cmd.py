import click

from wtt.cli.commands.merge import render_predictions
from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import user_output
from wtt.core.conflict_predictor import ConflictPredictor
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, WorktreeNotFound
from wtt.core.locator import detect_current_worktree, locate


def _branch_for_current_worktree(ctx: WttContext) -> str:
    repo = Ensure.in_repo(ctx)
    name = Ensure.not_none(
        detect_current_worktree(repo, ctx.cwd),
        "No branch given and the current directory is not inside a worktree",
    )
    try:
        worktree = locate(ctx.git, repo, name, cwd=ctx.cwd)
    except WorktreeNotFound as e:
        fail(str(e))
    return Ensure.not_none(worktree.branch, f"Worktree '{name}' is in detached HEAD state")


@click.command("predict")
@click.argument("branch", required=False)
@click.pass_obj
def predict_conflicts(ctx: WttContext, branch: str | None) -> None:
    """Predict conflicts between BRANCH and the main branch.

    BRANCH defaults to the branch of the worktree containing the current directory.
    """
    repo = Ensure.in_repo(ctx)
    if branch is None:
        branch = _branch_for_current_worktree(ctx)

    Ensure.invariant(
        ctx.git.branch_exists(repo.root, branch), f"Branch '{branch}' does not exist"
    )

    main_branch = ctx.config.main_branch
    try:
        predictions = ConflictPredictor(ctx.git).predict(repo.root, branch, main_branch)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    user_output(f"Conflict prediction: '{branch}' into '{main_branch}'")
    render_predictions(predictions)
