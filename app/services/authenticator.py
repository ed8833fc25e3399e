"""
Credential store used as the external authenticator.

Follows Layer 1 rules:
- Always use a strong hashing algorithm (bcrypt)
- NEVER log plaintext passwords, hashes or reset tokens
- Return minimal information on failure (no "user not found vs wrong password" distinction)

The identity services only depend on the `Authenticator` protocol; the two
implementations here back it with PostgreSQL or with process memory.
"""
from __future__ import annotations
import functools
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol
import psycopg2
from core.db import get_conn
from core.errors import EmailInUse, InvalidCredentials, UpstreamUnavailable
from core.logger import log_security_event
from core.security import hash_password, new_reset_token, verify_password

RESET_TOKEN_TTL = timedelta(hours=1)

# (email, one-time token) -> hand off to whatever delivers the email
ResetDelivery = Callable[[str, str], None]


class Authenticator(Protocol):
    def create_credential(self, email: str, password: str) -> str:
        """Returns the new credential id. Raises EmailInUse."""
        ...

    def authenticate(self, email: str, password: str) -> str:
        """Returns the credential id. Raises InvalidCredentials."""
        ...

    def send_password_reset(self, email: str) -> None:
        ...


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _upstream(fn):
    @functools.wraps(fn)
    def wrap(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            raise UpstreamUnavailable("Authenticator is unavailable", meta={"backend": "postgres"}) from e
    return wrap


CREDENTIALS_SQL = """
CREATE TABLE IF NOT EXISTS credentials (
    id            text        PRIMARY KEY,
    email         text        NOT NULL UNIQUE,
    password_hash text        NOT NULL,
    created_at    timestamptz NOT NULL DEFAULT now()
);
CREATE TABLE IF NOT EXISTS password_resets (
    token_hash    text        PRIMARY KEY,
    credential_id text        NOT NULL REFERENCES credentials(id) ON DELETE CASCADE,
    expires_at    timestamptz NOT NULL,
    created_at    timestamptz NOT NULL DEFAULT now()
);
"""


class PostgresAuthenticator:
    def __init__(self, deliver_reset: Optional[ResetDelivery] = None):
        self.deliver_reset = deliver_reset

    @_upstream
    def ensure_schema(self) -> None:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(CREDENTIALS_SQL)

    @_upstream
    def create_credential(self, email: str, password: str) -> str:
        email = normalize_email(email)
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("""
                INSERT INTO credentials (id, email, password_hash)
                VALUES (%s,%s,%s)
                ON CONFLICT (email) DO NOTHING
                RETURNING id
            """, (uuid.uuid4().hex, email, hash_password(password)))
            row = cur.fetchone()
        if not row:
            raise EmailInUse("An account with this email already exists", meta={"email": email})
        return row[0]

    @_upstream
    def authenticate(self, email: str, password: str) -> str:
        email = normalize_email(email)
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT id, password_hash FROM credentials WHERE email=%s LIMIT 1", (email,))
            row = cur.fetchone()
        if not row or not verify_password(password, row[1]):
            raise InvalidCredentials("Invalid credentials", meta={"email": email})
        return row[0]

    @_upstream
    def send_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        token, token_hash = new_reset_token()
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT id FROM credentials WHERE email=%s", (email,))
            row = cur.fetchone()
            if not row:
                log_security_event(action="password_reset", result="ignored",
                                   meta={"reason": "unknown_email"})
                return
            cur.execute("""
                INSERT INTO password_resets (token_hash, credential_id, expires_at)
                VALUES (%s,%s,%s)
            """, (token_hash, row[0], datetime.now(timezone.utc) + RESET_TOKEN_TTL))
        log_security_event(action="password_reset", result="issued", user_id=row[0])
        if self.deliver_reset is not None:
            self.deliver_reset(email, token)


class MemoryAuthenticator:
    """In-process authenticator for local development and tests."""

    def __init__(self, deliver_reset: Optional[ResetDelivery] = None):
        self.deliver_reset = deliver_reset
        self._by_email: dict[str, tuple[str, str]] = {}
        self._lock = threading.Lock()
        self.reset_requests: list[str] = []

    def create_credential(self, email: str, password: str) -> str:
        email = normalize_email(email)
        pwd_hash = hash_password(password)
        with self._lock:
            if email in self._by_email:
                raise EmailInUse("An account with this email already exists", meta={"email": email})
            credential_id = uuid.uuid4().hex
            self._by_email[email] = (credential_id, pwd_hash)
        return credential_id

    def authenticate(self, email: str, password: str) -> str:
        email = normalize_email(email)
        row = self._by_email.get(email)
        if not row or not verify_password(password, row[1]):
            raise InvalidCredentials("Invalid credentials", meta={"email": email})
        return row[0]

    def send_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        row = self._by_email.get(email)
        if not row:
            log_security_event(action="password_reset", result="ignored",
                               meta={"reason": "unknown_email"})
            return
        token, _ = new_reset_token()
        self.reset_requests.append(email)
        log_security_event(action="password_reset", result="issued", user_id=row[0])
        if self.deliver_reset is not None:
            self.deliver_reset(email, token)
