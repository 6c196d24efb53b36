"""Reader for the outputs of the infrastructure provisioning phase."""

import json
import logging
from pathlib import Path
from typing import Any

from . import command
from .exceptions import TerraformException

__all__ = [
    "Executor",
]

_LOGGER = logging.getLogger(__name__)

TERRAFORM_BIN = "terraform"


class Executor:
    """Runs terraform commands in a working directory."""

    def __init__(self, work_dir: Path, terraform_bin: str = TERRAFORM_BIN) -> None:
        """Initialize Executor."""
        self._work_dir = work_dir
        self._terraform_bin = terraform_bin

    def execute_sync(self, *args: str) -> bytes:
        """Run a terraform command and return its stdout."""
        cmd = command.Command(
            [self._terraform_bin, *args],
            cwd=self._work_dir,
            exc=TerraformException,
            env={"TF_IN_AUTOMATION": "1"},
        )
        return cmd.run()

    def output(self, name: str) -> Any:
        """Return the decoded JSON value of an output."""
        raw = self.execute_sync("output", "-json", name)
        _LOGGER.debug("Read terraform output %s (%d bytes)", name, len(raw))
        try:
            return json.loads(raw)
        except ValueError as err:
            raise TerraformException(f"Invalid JSON for output {name!r}: {err}") from err
