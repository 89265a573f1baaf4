"""
Runtime settings for golden-layer.

Settings are read from environment variables. An optional env file is
loaded first with python-dotenv, so local development and tests can keep
their values in ``config/*.env``.
"""
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

FailurePolicyName = Literal["FAIL_FAST", "ISOLATE"]

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class Settings(BaseModel):
    """
    Application settings.

    Attributes:
        db_host: PostgreSQL host
        db_port: PostgreSQL port
        db_name: Database name
        db_user: Database user
        db_password: Database password (None disables the PostgreSQL backend)
        log_level: Log level name
        log_format: "json" or "text"
        conformed_by: Actor recorded on runs, conformed rows and quarantine rows
        crosswalk_max_hops: Hop ceiling for crosswalk path discovery
        orchestrator_max_workers: Thread pool size per phase (1 = sequential)
        orchestrator_failure_policy: FAIL_FAST or ISOLATE
        config_dir: Directory holding the YAML governance files
    """

    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "datawarehouse"
    db_user: str = "pipeline"
    db_password: str | None = None
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    conformed_by: str = Field(default="golden_layer", min_length=1)
    crosswalk_max_hops: int = Field(default=5, ge=1)
    orchestrator_max_workers: int = Field(default=1, ge=1)
    orchestrator_failure_policy: FailurePolicyName = "FAIL_FAST"
    config_dir: Path = DEFAULT_CONFIG_DIR

    @property
    def crosswalk_config(self) -> Path:
        return self.config_dir / "crosswalk.yaml"

    @property
    def quality_rules_config(self) -> Path:
        return self.config_dir / "quality_rules.yaml"

    @property
    def source_systems_config(self) -> Path:
        return self.config_dir / "source_systems.yaml"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the current environment.

        Unset variables fall back to the field defaults.
        """
        env_map = {
            "db_host": "DB_HOST",
            "db_port": "DB_PORT",
            "db_name": "DB_NAME",
            "db_user": "DB_USER",
            "db_password": "DB_PASSWORD",
            "log_level": "LOG_LEVEL",
            "log_format": "LOG_FORMAT",
            "conformed_by": "CONFORMED_BY",
            "crosswalk_max_hops": "CROSSWALK_MAX_HOPS",
            "orchestrator_max_workers": "ORCHESTRATOR_MAX_WORKERS",
            "orchestrator_failure_policy": "ORCHESTRATOR_FAILURE_POLICY",
            "config_dir": "GOLDEN_CONFIG_DIR",
        }
        values = {field: os.environ[var] for field, var in env_map.items() if os.getenv(var)}
        if "log_format" in values:
            values["log_format"] = values["log_format"].lower()
        if "orchestrator_failure_policy" in values:
            values["orchestrator_failure_policy"] = values["orchestrator_failure_policy"].upper()
        return cls(**values)


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings, optionally reading an env file first.

    Args:
        env_file: Path to a dotenv file; values in it override the environment

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If env_file is given but does not exist
    """
    if env_file is not None:
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Env file not found: {env_file}")
        load_dotenv(env_path, override=True)
    return Settings.from_env()
