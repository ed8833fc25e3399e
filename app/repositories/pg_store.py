"""
PostgreSQL implementation of the tenant-scoped document store.

One JSONB table holds every document kind. Create-if-absent and the
join-request status transition are single statements, so concurrent callers
race on the primary key / WHERE clause instead of on a prior read.

The partial expression indexes serve as the credential -> profile and
approver -> request secondary indexes for the cross-tenant lookups.
"""
from __future__ import annotations
import functools
from typing import Any, Optional
import psycopg2
from psycopg2.extras import Json
from core.db import get_conn
from core.errors import UpstreamUnavailable

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    kind        text        NOT NULL,
    tenant_slug text        NOT NULL,
    doc_id      text        NOT NULL,
    data        jsonb       NOT NULL,
    updated_at  timestamptz NOT NULL DEFAULT now(),
    PRIMARY KEY (kind, tenant_slug, doc_id)
);
CREATE INDEX IF NOT EXISTS documents_profile_credential_idx
    ON documents ((data->>'credential_id')) WHERE kind = 'profile';
CREATE INDEX IF NOT EXISTS documents_join_request_approver_idx
    ON documents ((data->>'approver_email')) WHERE kind = 'join_request';
CREATE INDEX IF NOT EXISTS documents_tenant_manager_code_idx
    ON documents ((data->>'manager_code')) WHERE kind = 'tenant';
CREATE INDEX IF NOT EXISTS documents_tenant_employee_code_idx
    ON documents ((data->>'employee_code')) WHERE kind = 'tenant';
"""


def _upstream(fn):
    @functools.wraps(fn)
    def wrap(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            raise UpstreamUnavailable("Document store is unavailable", meta={"backend": "postgres"}) from e
    return wrap


def _text(value: Any) -> str:
    # ->> yields text; booleans compare as 'true'/'false'
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PostgresStore:
    """TenantStore backed by the `documents` table."""

    @_upstream
    def ensure_schema(self) -> None:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)

    @_upstream
    def get(self, kind: str, tenant_slug: str, doc_id: str) -> Optional[dict]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT data FROM documents WHERE kind=%s AND tenant_slug=%s AND doc_id=%s",
                (kind, tenant_slug, doc_id),
            )
            row = cur.fetchone()
        return row[0] if row else None

    @_upstream
    def set(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> None:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                INSERT INTO documents (kind, tenant_slug, doc_id, data)
                VALUES (%s,%s,%s,%s)
                ON CONFLICT (kind, tenant_slug, doc_id) DO UPDATE
                SET data=EXCLUDED.data, updated_at=now()
            """, (kind, tenant_slug, doc_id, Json(data)))

    @_upstream
    def create(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                INSERT INTO documents (kind, tenant_slug, doc_id, data)
                VALUES (%s,%s,%s,%s)
                ON CONFLICT (kind, tenant_slug, doc_id) DO NOTHING
                RETURNING doc_id
            """, (kind, tenant_slug, doc_id, Json(data)))
            return cur.fetchone() is not None

    @_upstream
    def update(self, kind: str, tenant_slug: str, doc_id: str, changes: dict) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                UPDATE documents SET data = data || %s, updated_at=now()
                WHERE kind=%s AND tenant_slug=%s AND doc_id=%s
                RETURNING doc_id
            """, (Json(changes), kind, tenant_slug, doc_id))
            return cur.fetchone() is not None

    @_upstream
    def compare_and_set(self, kind, tenant_slug, doc_id, field, expected, changes) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                UPDATE documents SET data = data || %s, updated_at=now()
                WHERE kind=%s AND tenant_slug=%s AND doc_id=%s AND data->>%s = %s
                RETURNING doc_id
            """, (Json(changes), kind, tenant_slug, doc_id, field, _text(expected)))
            return cur.fetchone() is not None

    @_upstream
    def delete(self, kind: str, tenant_slug: str, doc_id: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "DELETE FROM documents WHERE kind=%s AND tenant_slug=%s AND doc_id=%s RETURNING doc_id",
                (kind, tenant_slug, doc_id),
            )
            return cur.fetchone() is not None

    @_upstream
    def query(self, kind: str, tenant_slug: str, field: str, value: Any) -> list[dict]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                SELECT data FROM documents
                WHERE kind=%s AND tenant_slug=%s AND data->>%s = %s
                ORDER BY doc_id
            """, (kind, tenant_slug, field, _text(value)))
            return [r[0] for r in cur.fetchall()]

    @_upstream
    def query_all(self, kind: str, field: str, value: Any) -> list[dict]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                SELECT data FROM documents
                WHERE kind=%s AND data->>%s = %s
                ORDER BY tenant_slug, doc_id
            """, (kind, field, _text(value)))
            return [r[0] for r in cur.fetchall()]

    @_upstream
    def list_all(self, kind: str) -> list[dict]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT data FROM documents WHERE kind=%s ORDER BY tenant_slug, doc_id",
                (kind,),
            )
            return [r[0] for r in cur.fetchall()]
