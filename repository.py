from __future__ import annotations

import logging
from typing import Iterable, List
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy import text, update
from sqlmodel import SQLModel, Field, Session, col, create_engine, select

from domain import PayrollPeriod, TimeEntry

logger = logging.getLogger(__name__)


class TimeEntryDB(SQLModel, table=True):
    __tablename__ = "time_entries"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    punch_in_time: datetime = Field(index=True)
    punch_out_time: datetime | None = None
    lunch_break_start: datetime | None = None
    lunch_break_end: datetime | None = None
    total_hours: float | None = 0.0
    standard_hours: float | None = 0.0
    overtime_hours: float | None = 0.0
    notes: str | None = None
    is_edited: bool = False
    pay_period_start: date | None = Field(default=None, index=True)
    pay_period_end: date | None = None


IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def with_sslmode(db_url: str) -> str:
    """Hosted Postgres (Supabase) only accepts TLS connections."""
    if "sslmode=" in db_url:
        return db_url
    sep = "&" if "?" in db_url else "?"
    return f"{db_url}{sep}sslmode=require"


def build_engine(db_url: str, echo: bool = False):
    if db_url.startswith("sqlite"):
        # in-memory databases live on one connection, so keep exactly one
        pool = StaticPool if db_url in IN_MEMORY_URLS else None
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            **({"poolclass": pool} if pool else {}),
        )
    # no local pool in front of the hosted pooler
    return create_engine(
        with_sslmode(db_url),
        echo=echo,
        pool_pre_ping=True,
        poolclass=NullPool,
        connect_args={"connect_timeout": 10},
    )


class TimeEntryRepository:
    """Time entry storage. Timestamps are kept as naive UTC."""
    def __init__(self, url: str = "sqlite:///timeclock.db", tz: ZoneInfo | str = "UTC", echo: bool = False):
        self.primary_url = url
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self.engine = build_engine(url, echo=echo)

        # fail fast on an unreachable Postgres
        if not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except SQLAlchemyError as e:
                raise RuntimeError(f"Could not connect to Postgres: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    # --- timestamp conversion ---
    def _to_db(self, ts: datetime | None) -> datetime | None:
        if ts is None:
            return None
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=self.tz)
        return ts.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def _from_db(ts: datetime | None) -> datetime | None:
        return ts.replace(tzinfo=timezone.utc) if ts is not None else None

    def _day_bounds(self, start: date, end: date) -> tuple[datetime, datetime]:
        """Half-open UTC interval covering local dates [start, end]."""
        lo = datetime.combine(start, time.min, tzinfo=self.tz)
        hi = datetime.combine(end + timedelta(days=1), time.min, tzinfo=self.tz)
        return self._to_db(lo), self._to_db(hi)

    def _to_domain(self, r: TimeEntryDB) -> TimeEntry:
        return TimeEntry(
            id=r.id,
            user_id=r.user_id,
            punch_in_time=self._from_db(r.punch_in_time),
            punch_out_time=self._from_db(r.punch_out_time),
            lunch_break_start=self._from_db(r.lunch_break_start),
            lunch_break_end=self._from_db(r.lunch_break_end),
            total_hours=r.total_hours,
            standard_hours=r.standard_hours,
            overtime_hours=r.overtime_hours,
            notes=r.notes,
            is_edited=r.is_edited,
            pay_period_start=r.pay_period_start,
            pay_period_end=r.pay_period_end,
        )

    # --- CRUD ---
    def add(self, e: TimeEntry) -> TimeEntry:
        with Session(self.engine) as session:
            row = TimeEntryDB(
                user_id=e.user_id,
                punch_in_time=self._to_db(e.punch_in_time),
                punch_out_time=self._to_db(e.punch_out_time),
                lunch_break_start=self._to_db(e.lunch_break_start),
                lunch_break_end=self._to_db(e.lunch_break_end),
                total_hours=e.total_hours,
                standard_hours=e.standard_hours,
                overtime_hours=e.overtime_hours,
                notes=e.notes,
                is_edited=e.is_edited,
                pay_period_start=e.pay_period_start,
                pay_period_end=e.pay_period_end,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info(f"Time entry {row.id} stored for user {row.user_id}.")
            return self._to_domain(row)

    def get(self, entry_id: int) -> TimeEntry | None:
        with Session(self.engine) as session:
            row = session.get(TimeEntryDB, entry_id)
            return self._to_domain(row) if row else None

    def open_entry(self, user_id: str) -> TimeEntry | None:
        """The entry the user is currently clocked in on, if any."""
        with Session(self.engine) as session:
            row = session.exec(
                select(TimeEntryDB)
                .where(TimeEntryDB.user_id == user_id, col(TimeEntryDB.punch_out_time).is_(None))
                .order_by(col(TimeEntryDB.punch_in_time).desc())
            ).first()
            return self._to_domain(row) if row else None

    def list_for_range(
        self,
        start: date,
        end: date,
        user_ids: Iterable[str] | None = None,
        closed_only: bool = True,
    ) -> List[TimeEntry]:
        """Entries punched in on local dates [start, end], oldest first."""
        lo, hi = self._day_bounds(start, end)
        stmt = select(TimeEntryDB).where(
            col(TimeEntryDB.punch_in_time) >= lo,
            col(TimeEntryDB.punch_in_time) < hi,
        )
        if user_ids is not None:
            stmt = stmt.where(col(TimeEntryDB.user_id).in_(list(user_ids)))
        if closed_only:
            stmt = stmt.where(col(TimeEntryDB.punch_out_time).is_not(None))
        stmt = stmt.order_by(col(TimeEntryDB.punch_in_time), col(TimeEntryDB.id))

        with Session(self.engine) as session:
            rows = session.exec(stmt).all()
            return [self._to_domain(r) for r in rows]

    def list_for_period(self, period: PayrollPeriod, user_ids: Iterable[str] | None = None,
                        closed_only: bool = True) -> List[TimeEntry]:
        return self.list_for_range(period.period_start, period.period_end, user_ids, closed_only)

    def mark_paid(self, user_id: str, period: PayrollPeriod) -> int:
        """
        Assigns the user's closed, still unassigned entries of the period to it.
        A single filtered UPDATE: repeating it changes nothing and entries
        already paid in another period are left alone. Returns rows changed.
        """
        lo, hi = self._day_bounds(period.period_start, period.period_end)
        stmt = (
            update(TimeEntryDB)
            .where(
                col(TimeEntryDB.user_id) == user_id,
                col(TimeEntryDB.pay_period_start).is_(None),
                col(TimeEntryDB.punch_out_time).is_not(None),
                col(TimeEntryDB.punch_in_time) >= lo,
                col(TimeEntryDB.punch_in_time) < hi,
            )
            .values(pay_period_start=period.period_start, pay_period_end=period.period_end)
        )
        try:
            with self.engine.begin() as conn:
                changed = conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error marking entries paid for user {user_id} ({period.period_name}): {e}",
                         exc_info=True)
            raise
        logger.info(f"{changed} entries of user {user_id} marked paid for {period.period_name}.")
        return changed


__all__ = ["TimeEntryDB", "TimeEntryRepository", "build_engine", "with_sslmode"]
