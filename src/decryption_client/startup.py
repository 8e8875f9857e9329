"""Centralized initialization for decryption_client entry points.

Loads the project ``.env`` file once so that ``ClientConfig.from_env`` sees
the ``DECRYPTION_CLIENT_*`` settings it defines.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Module-level state
_initialized: bool = False
_project_root: Optional[Path] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find project root by looking for .env or pyproject.toml.

    Args:
        start_path: Starting path for search. Defaults to the working directory.

    Returns:
        Project root directory.
    """
    current = start_path or Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / ".env").exists():
            return parent
        if (parent / "pyproject.toml").exists():
            return parent
    return current


def _load_env(project_root: Path) -> bool:
    """Load .env file from project root.

    Args:
        project_root: Project root directory.

    Returns:
        True if .env was loaded, False otherwise.
    """
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded .env from {env_path}")
        return True
    logger.debug(f".env not found at {env_path}")
    return False


def ensure_initialized(start_path: Optional[Path] = None) -> Path:
    """Ensure the environment is loaded (idempotent).

    Returns:
        Project root directory.
    """
    global _initialized, _project_root

    if _initialized and _project_root is not None:
        return _project_root

    _project_root = _find_project_root(start_path)
    _load_env(_project_root)
    _initialized = True
    return _project_root


def reset() -> None:
    """Reset initialization state (for tests)."""
    global _initialized, _project_root
    _initialized = False
    _project_root = None
