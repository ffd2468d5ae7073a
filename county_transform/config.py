import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def load_environment():
    """Load .env from the working directory, then the home directory"""
    for env_path in [".env", os.path.expanduser("~/.env")]:
        if os.path.exists(env_path):
            load_dotenv(dotenv_path=env_path)
            break
    else:
        load_dotenv()  # fallback to default behavior


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Where one transform run reads from and writes to"""

    input_dir: str = "."
    output_dir: str = "data"
    owners_dir: str = "owners"
    county: Optional[str] = None
    strict_deed_types: bool = False
    logs_dir: str = "logs"
    log_level: str = "INFO"
    raw_fields_path: Optional[str] = None
    use_code_table_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            input_dir=os.getenv("TRANSFORM_INPUT_DIR", "."),
            output_dir=os.getenv("TRANSFORM_OUTPUT_DIR", "data"),
            owners_dir=os.getenv("TRANSFORM_OWNERS_DIR", "owners"),
            county=os.getenv("TRANSFORM_COUNTY") or None,
            strict_deed_types=_env_flag("STRICT_DEED_TYPES"),
            logs_dir=os.getenv("LOGS_DIR", "logs"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def input_path(self, *parts: str) -> str:
        return os.path.join(self.input_dir, *parts)

    def owners_path(self, filename: str) -> str:
        if os.path.isabs(self.owners_dir):
            return os.path.join(self.owners_dir, filename)
        return os.path.join(self.input_dir, self.owners_dir, filename)
