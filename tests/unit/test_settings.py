"""
Unit tests for settings loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from golden_layer.settings import DEFAULT_CONFIG_DIR, Settings, load_settings

SETTINGS_VARS = [
    "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "LOG_LEVEL", "LOG_FORMAT",
    "CONFORMED_BY", "CROSSWALK_MAX_HOPS", "ORCHESTRATOR_MAX_WORKERS",
    "ORCHESTRATOR_FAILURE_POLICY", "GOLDEN_CONFIG_DIR",
]


@pytest.fixture
def clean_env(monkeypatch):
    for var in SETTINGS_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestSettings:
    """Tests for Settings"""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.db_password is None
        assert settings.orchestrator_failure_policy == "FAIL_FAST"
        assert settings.orchestrator_max_workers == 1
        assert settings.crosswalk_config == DEFAULT_CONFIG_DIR / "crosswalk.yaml"

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("DB_PORT", "6543")
        clean_env.setenv("LOG_FORMAT", "TEXT")
        clean_env.setenv("ORCHESTRATOR_FAILURE_POLICY", "isolate")
        clean_env.setenv("ORCHESTRATOR_MAX_WORKERS", "4")
        clean_env.setenv("GOLDEN_CONFIG_DIR", str(tmp_path))

        settings = Settings.from_env()

        assert settings.db_port == 6543
        assert settings.log_format == "text"
        assert settings.orchestrator_failure_policy == "ISOLATE"
        assert settings.orchestrator_max_workers == 4
        assert settings.quality_rules_config == Path(tmp_path) / "quality_rules.yaml"

    def test_invalid_values_rejected(self, clean_env):
        clean_env.setenv("ORCHESTRATOR_MAX_WORKERS", "0")
        with pytest.raises(ValidationError):
            Settings.from_env()

    def test_load_test_env(self, test_env_vars, test_env_path):
        settings = load_settings(test_env_path)

        assert settings.db_name == "test_datawarehouse"
        assert settings.db_user == "test_pipeline"
        assert settings.db_password == "test_password"
        assert settings.log_level == "DEBUG"
        assert settings.conformed_by == "golden_layer_test"

    def test_missing_env_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.env")
