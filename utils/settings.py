"""Environment-driven configuration for the admin backend."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

BASE_DIR = Path(__file__).resolve().parent.parent

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_dir(name: str, default: Path) -> Path:
    """Return a directory path from `name`, falling back to `default`.

    The directory does not have to exist yet (content and image folders are
    created lazily), but an existing regular file at that path is a
    configuration error.
    """
    raw = os.getenv(name)
    path = Path(raw).expanduser() if raw and raw.strip() else default
    if path.exists() and not path.is_dir():
        raise RuntimeError(
            f"{name}={str(path)!r} points to a file, not a directory. "
            f"Please set {name} to a directory path."
        )
    return path


@dataclass
class AdminSettings:
    """Resolved runtime settings.

    Attributes:
        content_dir: Root folder holding one subfolder of Markdown records per category.
        images_dir: Root folder holding one subfolder of image assets per category.
        public_dir: Folder with the admin UI static files.
        redis_url: Connection URL of the shared follow-up store.
        followup_queue_key: Name of the Redis list the chat-bot appends to.
        admin_username: Shared credential user name (None when unset).
        admin_password: Shared credential password (None when unset).
        local_only: When True the credential check is skipped entirely.
        deploy_command: Argument vector of the external publish command.
        project_root: Working directory the deploy command runs in.
    """

    content_dir: Path
    images_dir: Path
    public_dir: Path = BASE_DIR / "public"
    redis_url: str = "redis://localhost:6379/0"
    followup_queue_key: str = "followups"
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    local_only: bool = False
    deploy_command: List[str] = field(default_factory=lambda: ["npm", "run", "deploy"])
    project_root: Path = field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3001

    @property
    def auth_configured(self) -> bool:
        return bool(self.admin_username and self.admin_password)

    def validate(self) -> None:
        """Fail fast on configurations that would leave the API unprotected."""
        if not self.local_only and not self.auth_configured:
            raise RuntimeError(
                "ADMIN_USERNAME and ADMIN_PASSWORD must be set, or ADMIN_LOCAL_ONLY=true "
                "must be used to run without authentication."
            )
        if not self.deploy_command:
            raise RuntimeError("DEPLOY_COMMAND must not be empty.")

    @classmethod
    def from_env(cls) -> "AdminSettings":
        """Build settings from environment variables."""
        project_root = _env_dir("PROJECT_ROOT", Path.cwd())
        try:
            port = int(os.getenv("ADMIN_PORT", "3001"))
        except ValueError as exc:
            raise RuntimeError("ADMIN_PORT must be an integer") from exc

        return cls(
            content_dir=_env_dir("CONTENT_DIR", project_root / "src" / "content"),
            images_dir=_env_dir("IMAGES_DIR", project_root / "public" / "images"),
            public_dir=_env_dir("ADMIN_PUBLIC_DIR", BASE_DIR / "public"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            followup_queue_key=os.getenv("FOLLOWUP_QUEUE_KEY", "followups"),
            admin_username=os.getenv("ADMIN_USERNAME") or None,
            admin_password=os.getenv("ADMIN_PASSWORD") or None,
            local_only=_env_flag("ADMIN_LOCAL_ONLY"),
            deploy_command=shlex.split(os.getenv("DEPLOY_COMMAND", "npm run deploy")),
            project_root=project_root,
            host=os.getenv("ADMIN_HOST", "127.0.0.1"),
            port=port,
        )
