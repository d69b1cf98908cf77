"""JSON output utilities for CLI commands with machine-parseable output."""

import json

from pydantic import BaseModel

from wtt.cli.output import machine_output


def emit_json(model: BaseModel) -> None:
    """Output a validated response model as JSON on stdout.

    Routes JSON through machine_output() to ensure correct stream
    separation (data on stdout, human messages on stderr).
    """
    machine_output(json.dumps(model.model_dump(mode="json"), indent=2))
