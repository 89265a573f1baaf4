"""
Unit tests for database connection pool configuration
"""
import pytest

from golden_layer.settings import Settings
from golden_layer.warehouse.connection import DatabaseConnectionPool


@pytest.mark.unit
class TestConnectionPoolConfig:
    """Tests for pool construction without a database"""

    def test_missing_password(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD", raising=False)
        with pytest.raises(ValueError, match="password"):
            DatabaseConnectionPool(host="localhost")

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_PORT", "6543")
        monkeypatch.setenv("DB_PASSWORD", "secret")

        pool = DatabaseConnectionPool()

        assert pool.host == "db.internal"
        assert pool.port == 6543
        assert "dbname=" in pool.conninfo
        assert not pool.is_open

    def test_from_settings(self):
        settings = Settings(db_host="warehouse", db_name="silver", db_user="svc", db_password="pw")

        pool = DatabaseConnectionPool.from_settings(settings, max_size=3)

        assert pool.conninfo.startswith("host=warehouse port=5432 dbname=silver user=svc password=pw")
        assert "application_name=golden-layer" in pool.conninfo
        assert pool.max_size == 3

    def test_get_connection_requires_open(self):
        pool = DatabaseConnectionPool(password="pw")
        with pytest.raises(RuntimeError, match="not open"):
            with pool.get_connection():
                pass


@pytest.mark.integration
class TestConnectionPool:
    """Tests against a PostgreSQL container"""

    def test_execute_query(self, db_pool):
        result = db_pool.execute_query("SELECT 42 AS answer")
        assert result == [{"answer": 42}]

    def test_execute_command(self, clean_db, db_pool):
        affected = db_pool.execute_command(
            "INSERT INTO etl_run_log (run_id, pipeline_code, target_layer, target_entity, operation, "
            "status, start_time, executed_by) VALUES (%s, %s, 'SILVER', %s, 'MERGE', 'RUNNING', now(), 'test')",
            ("run-1", "PL_ASSET_DAILY", "asset"),
        )
        assert affected == 1

    def test_transaction_rolls_back_on_error(self, clean_db, db_pool):
        with pytest.raises(RuntimeError, match="abort"):
            with db_pool.transaction() as cur:
                cur.execute(
                    "INSERT INTO etl_run_log (run_id, pipeline_code, target_layer, target_entity, operation, "
                    "status, start_time, executed_by) VALUES ('run-1', 'PL_ASSET_DAILY', 'SILVER', 'asset', "
                    "'MERGE', 'RUNNING', now(), 'test')"
                )
                raise RuntimeError("abort")

        assert db_pool.execute_query("SELECT COUNT(*) AS n FROM etl_run_log") == [{"n": 0}]
