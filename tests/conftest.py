"""
Pytest configuration and fixtures for golden-layer tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import itertools
import os
from datetime import datetime, timedelta, timezone
from typing import Generator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from golden_layer.conformance import QuarantineSink, RunLedger
from golden_layer.core.models import RawRecord
from golden_layer.entities import seed
from golden_layer.warehouse.connection import DatabaseConnectionPool
from golden_layer.warehouse.memory import (
    InMemoryConformedStore,
    InMemoryQuarantineStore,
    InMemoryRawRecordSource,
    InMemoryRunLedgerStore,
)
from golden_layer.warehouse.schema import TABLES, ensure_schema


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# IN-MEMORY STORE FIXTURES
# =======================

@pytest.fixture
def raw_source() -> InMemoryRawRecordSource:
    return InMemoryRawRecordSource()


@pytest.fixture
def conformed_store() -> InMemoryConformedStore:
    return InMemoryConformedStore()


@pytest.fixture
def quarantine_store() -> InMemoryQuarantineStore:
    return InMemoryQuarantineStore()


@pytest.fixture
def run_ledger_store() -> InMemoryRunLedgerStore:
    return InMemoryRunLedgerStore()


@pytest.fixture
def quarantine_sink(quarantine_store) -> QuarantineSink:
    return QuarantineSink(quarantine_store, quarantined_by="test")


@pytest.fixture
def run_ledger(run_ledger_store) -> RunLedger:
    return RunLedger(run_ledger_store, executed_by="test")


@pytest.fixture
def graph():
    """Crosswalk graph built from the seed"""
    return seed.crosswalk_graph()


@pytest.fixture
def catalog():
    return seed.rule_catalog()


# =======================
# RAW RECORD FACTORY
# =======================

@pytest.fixture
def make_raw():
    """
    Factory for raw records with unique ids and increasing ingestion times

    Usage:
        make_raw("src_enterprise_raw", {"investment_team_id": "ENT-IT-1"}, record_type="investment_team")
    """
    counter = itertools.count(1)
    base = datetime(2025, 1, 15, 6, 0, tzinfo=timezone.utc)

    def _make(
        stream: str,
        payload: dict,
        record_type: str | None = None,
        batch_id: str = "BATCH-001",
        ingested_at: datetime | None = None,
        record_id: str | None = None,
    ) -> RawRecord:
        n = next(counter)
        return RawRecord(
            record_id=record_id or f"{stream}-{n:06d}",
            stream=stream,
            record_type=record_type,
            batch_id=batch_id,
            ingested_at=ingested_at or base + timedelta(minutes=n),
            payload=payload,
        )

    return _make


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance with the golden-layer schema applied
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_datawarehouse"
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Session-scoped connection pool against the test container

    Yields:
        Open DatabaseConnectionPool with the schema created
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_datawarehouse",
        user="test_pipeline",
        password="test_password",
        min_size=1,
        max_size=4,
    )
    pool.open()
    ensure_schema(pool)
    yield pool
    pool.close()


@pytest.fixture(scope="function")
def db_connection(db_pool) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a database connection for a single test

    Yields:
        psycopg Connection object
    """
    with db_pool.get_connection() as conn:
        yield conn
        # Rollback any uncommitted changes after test
        conn.rollback()


@pytest.fixture(scope="function")
def clean_db(db_connection) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a clean database by truncating all tables before each test

    Yields:
        psycopg Connection object with clean database
    """
    with db_connection.cursor() as cur:
        cur.execute(f"TRUNCATE TABLE {', '.join(TABLES)} RESTART IDENTITY")
    db_connection.commit()

    yield db_connection


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_path() -> str:
    return os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )


@pytest.fixture
def test_env_vars(test_env_path, monkeypatch):
    """
    Set test environment variables

    This fixture loads test.env; monkeypatch restores the environment
    """
    from dotenv import dotenv_values

    for key, value in dotenv_values(test_env_path).items():
        monkeypatch.setenv(key, value)
