from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, CompletedDay
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, clock_in, clock_out,
    clock_in_latitude, clock_in_longitude, clock_out_latitude, clock_out_longitude,
    clock_in_distance_meters, clock_out_distance_meters, total_hours, notes
"""


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        clock_in_latitude=_opt_float(r.get("clock_in_latitude")),
        clock_in_longitude=_opt_float(r.get("clock_in_longitude")),
        clock_out_latitude=_opt_float(r.get("clock_out_latitude")),
        clock_out_longitude=_opt_float(r.get("clock_out_longitude")),
        clock_in_distance_meters=_opt_int(r.get("clock_in_distance_meters")),
        clock_out_distance_meters=_opt_int(r.get("clock_out_distance_meters")),
        total_hours=_opt_float(r.get("total_hours")),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE work_date=%s", (work_date,))
            return [_to_record(r) for r in fetchall(cur)]

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance WHERE work_date >= %s AND work_date <= %s"
        params: list[object] = [start_date, end_date]
        if user_id is not None:
            sql += " AND user_id = %s"
            params.append(int(user_id))
        sql += " ORDER BY work_date DESC, attendance_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        latitude: Optional[float],
        longitude: Optional[float],
        distance_meters: Optional[int],
    ) -> int:
        # uq_attendance_user_date turns a second insert into DuplicateRecordError.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    user_id, work_date, clock_in, clock_in_latitude, clock_in_longitude, clock_in_distance_meters
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), work_date, clock_in, latitude, longitude, distance_meters),
            )
            return int(cur.lastrowid)

    def update_clock_out(
        self,
        *,
        attendance_id: int,
        clock_out: datetime,
        latitude: Optional[float],
        longitude: Optional[float],
        distance_meters: Optional[int],
        total_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out=%s, clock_out_latitude=%s, clock_out_longitude=%s,
                    clock_out_distance_meters=%s, total_hours=%s
                WHERE attendance_id=%s AND clock_out IS NULL
                """,
                (clock_out, latitude, longitude, distance_meters, total_hours, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_completed(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[CompletedDay]:
        clauses = ["total_hours IS NOT NULL"]
        params: list[object] = []

        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        if user_id is not None:
            clauses.append("user_id = %s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id, work_date, total_hours FROM attendance WHERE {where} ORDER BY work_date",
                tuple(params),
            )
            return [
                CompletedDay(
                    user_id=int(r["user_id"]),
                    work_date=r["work_date"],
                    total_hours=float(r["total_hours"]),
                )
                for r in fetchall(cur)
            ]
