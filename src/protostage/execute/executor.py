"""Runs a finished protoc invocation."""

import logging
from pathlib import Path
from typing import Optional

from ..errors import ProtocExecutionError
from ..subprocess_utils import safe_run
from .builder import ProtocInvocation

logger = logging.getLogger(__name__)


class ProtocExecutor:
    """Launches protoc for one invocation and reports its outcome."""

    def __init__(self, invocation: ProtocInvocation):
        self.invocation = invocation

    def invoke(self, cwd: Optional[Path] = None) -> bool:
        """Run protoc and wait for it to exit.

        protoc's stdout and stderr are captured and logged line by line,
        stderr at WARNING level since protoc reports both warnings and errors
        there.

        Args:
            cwd: Working directory for protoc (defaults to the current one)

        Returns:
            True if protoc exited with status 0

        Raises:
            ProtocExecutionError: If protoc could not be launched
        """
        logger.info(f"Invoking protoc: {self.invocation}")

        try:
            result = safe_run(
                self.invocation.arguments,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ProtocExecutionError(f"Failed to launch {self.invocation.executable}: {e}") from e

        for line in (result.stdout or "").splitlines():
            logger.info(f"protoc: {line}")
        for line in (result.stderr or "").splitlines():
            logger.warning(f"protoc: {line}")

        if result.returncode != 0:
            logger.error(f"protoc exited with status {result.returncode}")
            return False

        return True
