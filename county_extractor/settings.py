import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from .owners.linker import CurrentOwnerFallback


def load_environment():
    """Load .env from the working directory, falling back to the home directory"""
    for env_path in [".env", os.path.expanduser("~/.env")]:
        if os.path.exists(env_path):
            load_dotenv(dotenv_path=env_path)
            break
    else:
        load_dotenv()


def _parse_bool(value):
    if value is None or not str(value).strip():
        return None
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _parse_fallback(value):
    if value is None or not str(value).strip():
        return None
    return CurrentOwnerFallback.parse(value)


@dataclass(frozen=True)
class Settings:
    # None means "use the county default" for both
    owner_fallback: Optional[CurrentOwnerFallback] = None
    repair_digits: Optional[bool] = None
    logs_dir: str = os.path.join(os.path.abspath("."), "logs")
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls):
        load_environment()
        return cls(
            owner_fallback=_parse_fallback(os.getenv("OWNER_FALLBACK")),
            repair_digits=_parse_bool(os.getenv("REPAIR_DIGITS")),
            logs_dir=os.getenv("LOGS_DIR", os.path.join(os.path.abspath("."), "logs")),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )

    def with_overrides(self, owner_fallback=None, repair_digits=None, log_level=None):
        """Return a copy with the CLI-provided values taking precedence"""
        changes = {}
        if owner_fallback is not None:
            changes["owner_fallback"] = CurrentOwnerFallback.parse(owner_fallback)
        if repair_digits is not None:
            changes["repair_digits"] = repair_digits
        if log_level is not None:
            changes["log_level"] = log_level
        return replace(self, **changes) if changes else self

    def repair_digits_for(self, county):
        if self.repair_digits is not None:
            return self.repair_digits
        return bool(getattr(county, "REPAIR_DIGITS", False))

    def owner_fallback_for(self, county):
        if self.owner_fallback is not None:
            return self.owner_fallback
        return getattr(county, "OWNER_FALLBACK", CurrentOwnerFallback.NONE)
