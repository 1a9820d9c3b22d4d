"""Locating the protoc executable.

Lookup order:
1. An explicit path from the configuration or command line
2. The PROTOSTAGE_PROTOC environment variable
3. ``protoc`` on PATH
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .errors import ProtocNotFoundError

logger = logging.getLogger(__name__)

PROTOC_ENV_VAR = "PROTOSTAGE_PROTOC"


def resolve_protoc(explicit: Optional[Path] = None) -> Path:
    """Find the protoc executable to use.

    Args:
        explicit: Path given by the user, if any

    Returns:
        Path to the protoc executable

    Raises:
        ProtocNotFoundError: If no protoc executable can be found
    """
    if explicit is not None:
        explicit = Path(explicit)
        if not explicit.is_file():
            raise ProtocNotFoundError(f"protoc executable not found at {explicit}")
        return explicit

    from_env = os.environ.get(PROTOC_ENV_VAR)
    if from_env:
        path = Path(from_env)
        if not path.is_file():
            raise ProtocNotFoundError(f"{PROTOC_ENV_VAR} points to {path}, which does not exist")
        logger.debug(f"Using protoc from {PROTOC_ENV_VAR}: {path}")
        return path

    on_path = shutil.which("protoc")
    if on_path is None:
        raise ProtocNotFoundError(f"protoc was not found on PATH; install it or set {PROTOC_ENV_VAR}")

    logger.debug(f"Using protoc from PATH: {on_path}")
    return Path(on_path)
