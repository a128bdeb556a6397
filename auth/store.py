"""
auth/store.py -- SQLAlchemy Core persistence layer for local user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
The coordinator never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  The coordinator checks email_exists() before signing a user up, but two
  concurrent signups can both pass that check. UNIQUE(email) on the table is
  the backstop: the second create_user() raises IntegrityError.

DB path: authgate.db at the project root unless DATABASE_URL says otherwise.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import RegistrationStep, UserRecord

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("sub", String(64), nullable=False),  # identity provider subject id
    Column(
        "registration_step",
        String(32),
        nullable=False,
        server_default=RegistrationStep.PENDING_CONFIRMATION.value,
    ),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserRecord entities.

    Usage:
        store = UserStore("sqlite:///authgate.db")
        store.create_user(UserRecord(email="a@example.com", sub="1234-abcd"))
        store.mark_confirmed("a@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def email_exists(self, email: str) -> bool:
        """Return True if a record for this exact email (case-sensitive) exists."""
        with self.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(_users).where(_users.c.email == email)).scalar()
        return (count or 0) > 0

    def get_by_email(self, email: str) -> UserRecord | None:
        """Look up a record by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_by_step(self, step: RegistrationStep) -> list[UserRecord]:
        """Return all records at the given registration step, oldest first.

        Used to reconcile with the identity provider by hand: records stuck at
        PENDING_CONFIRMATION for long are candidates for a provider lookup.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _users.select()
                .where(_users.c.registration_step == step.value)
                .order_by(_users.c.created_at, _users.c.id)
            ).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, user: UserRecord) -> int:
        """Insert a new record and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    sub=user.sub,
                    registration_step=RegistrationStep(user.registration_step).value,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def mark_confirmed(self, email: str) -> bool:
        """Set registration_step to DONE for the given email.

        Returns True if a row was updated, False if no record matches. Already
        confirmed records are left untouched (and also return False), so the
        PENDING_CONFIRMATION -> DONE transition happens at most once.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(
                    (_users.c.email == email)
                    & (_users.c.registration_step == RegistrationStep.PENDING_CONFIRMATION.value)
                )
                .values(registration_step=RegistrationStep.DONE.value, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        sub=row.sub,
        registration_step=RegistrationStep(row.registration_step),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
