import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

ENV_FILES = (".env.local", ".env")

URL_VARS = ("NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_URL")
KEY_VARS = ("SUPABASE_SERVICE_ROLE_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY")
DATABASE_URL_VAR = "OSTEOJOB_DATABASE_URL"
LOG_LEVEL_VAR = "OSTEOJOB_LOG_LEVEL"


def load_env(root: Optional[Path] = None) -> None:
    """Load .env.local and .env from the project root if present.
    Variables already set in the process environment win.
    """
    root = root or Path.cwd()
    for name in ENV_FILES:
        env_path = root / name
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)


def _first_env(names) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        A database URL selects the SQL store and makes the Supabase
        credentials optional.

        Raises:
            ConfigurationError: If no store can be configured
        """
        settings = cls(
            supabase_url=_first_env(URL_VARS),
            supabase_key=_first_env(KEY_VARS),
            database_url=_first_env((DATABASE_URL_VAR,)),
            log_level=(_first_env((LOG_LEVEL_VAR,)) or "INFO").upper(),
        )
        if settings.database_url:
            return settings
        if not settings.supabase_url:
            raise ConfigurationError(
                f"Missing Supabase URL: set one of {', '.join(URL_VARS)}"
            )
        if not settings.supabase_key:
            raise ConfigurationError(
                f"Missing Supabase key: set one of {', '.join(KEY_VARS)}"
            )
        return settings

    def masked_key(self) -> str:
        if not self.supabase_key:
            return ""
        return f"{self.supabase_key[:20]}..."
