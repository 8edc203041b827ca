from __future__ import annotations

from pathlib import Path
import os

from dotenv import load_dotenv


def load_local_environment() -> None:
    """Load environment variables from the project's ``.env`` file.

    Canonical path: <project_root>/.env, falling back to ~/.smatrader/.env.
    The resolved path is exposed via SMATRADER_ENV_PATH for diagnostics.
    """
    project_root = Path(__file__).resolve().parents[2]
    root_env = project_root / ".env"
    home_env = Path.home() / ".smatrader" / ".env"

    for candidate in (root_env, home_env):
        if candidate.exists():
            load_dotenv(dotenv_path=candidate, override=True)
            os.environ["SMATRADER_ENV_PATH"] = str(candidate)
            return

    os.environ.setdefault("SMATRADER_ENV_PATH", str(root_env))
