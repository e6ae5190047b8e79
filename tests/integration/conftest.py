import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest
from psycopg.types.json import Jsonb

from recruitflow.config.settings import Settings
from recruitflow.database.connection import close_pool, get_connection, init_pool
from recruitflow.database.models import AttachmentRecord, JobRecord
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.job_repository import JobRepository

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "recruitflow" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "recruitflow_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def seed_candidate(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    """A candidate row; deleting it cascades to its attachments, notes and jobs."""
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO candidates (name, resume_raw_text, pipeline_stage)
            VALUES ('Integration Candidate', 'Ten years of Python', 'homework')
            RETURNING id
            """
        )
        row = cur.fetchone()
        assert row is not None
        candidate_id = str(row[0])
    db_conn.commit()
    try:
        yield candidate_id
    finally:
        db_conn.rollback()
        with db_conn.cursor() as cur:
            cur.execute("DELETE FROM candidates WHERE id = %s", (candidate_id,))
        db_conn.commit()


def insert_attachment(
    db_conn: psycopg.Connection[Any],
    candidate_id: str,
    *,
    stage: str | None = "homework",
    file_name: str = "solution.txt",
    blob_url: str = "http://localhost:8000/files/solution.txt",
    mime_type: str = "text/plain",
    ai_generated: bool = False,
) -> AttachmentRecord:
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO attachments
            (candidate_id, pipeline_stage, type, file_name, blob_url, mime_type, ai_generated)
            VALUES (%s, %s, 'homework', %s, %s, %s, %s)
            RETURNING id
            """,
            (candidate_id, stage, file_name, blob_url, mime_type, ai_generated),
        )
        row = cur.fetchone()
        assert row is not None
    db_conn.commit()
    return AttachmentRepository().find_by_id(str(row[0]))


@pytest.fixture
def seed_attachment(
    db_conn: psycopg.Connection[Any],
    seed_candidate: str,
) -> AttachmentRecord:
    return insert_attachment(db_conn, seed_candidate)


@pytest.fixture
def seed_job(seed_attachment: AttachmentRecord) -> JobRecord:
    return JobRepository().create_job(
        attachment_id=seed_attachment.id,
        candidate_id=seed_attachment.candidate_id,
        pipeline_stage="homework",
        job_type="analyze",
        config={"prompt": "Review {file_name}:\n{content}"},
        input_data={"output_type": "report"},
    )


@pytest.fixture
def stage_rules(
    db_conn: psycopg.Connection[Any],
) -> Generator[Callable[[str, list[dict[str, Any]]], None], None, None]:
    """Set a stage's processing rules; configs written here are removed afterwards."""
    stages: list[str] = []

    def set_rules(stage: str, rules: list[dict[str, Any]]) -> None:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO pipeline_stage_configs (stage, display_name, processing_rules)
                VALUES (%s, %s, %s)
                ON CONFLICT (stage) DO UPDATE SET processing_rules = EXCLUDED.processing_rules
                """,
                (stage, stage, Jsonb(rules)),
            )
        db_conn.commit()
        stages.append(stage)

    yield set_rules
    if stages:
        with db_conn.cursor() as cur:
            cur.execute("DELETE FROM pipeline_stage_configs WHERE stage = ANY(%s)", (stages,))
        db_conn.commit()
