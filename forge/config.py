"""Centralised settings for the dapp-forge blueprint core.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / CLI state
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("FORGE_WORKSPACE", Path.home() / ".forge_data")
        )
    )
    cli_config_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("FORGE_CLI_DIR", Path.home() / ".forge_cli")
        )
    )

    # ------------------------------------------------------------------
    # Editing session
    # ------------------------------------------------------------------
    history_size: int = field(
        default_factory=lambda: int(os.environ.get("FORGE_HISTORY_SIZE", "50"))
    )

    # ------------------------------------------------------------------
    # Blueprint defaults
    # ------------------------------------------------------------------
    default_project_name: str = field(
        default_factory=lambda: os.environ.get("FORGE_DEFAULT_PROJECT_NAME", "My Dapp")
    )
    default_chain: str = field(
        default_factory=lambda: os.environ.get("FORGE_DEFAULT_CHAIN", "arbitrum-sepolia")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("FORGE_LOG_LEVEL", "WARNING")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger for CLI and server entry points.

    Args:
        level: Level name override.  Defaults to ``settings.log_level``.
    """
    level_name = (level or settings.log_level).upper()
    resolved = getattr(logging, level_name, logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)


# Module-level singleton, import this everywhere:
#   from forge.config import settings
settings = Settings()
