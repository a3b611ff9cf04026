from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timezone

from app.core.config import settings
from app.schemas.assessment import AssessmentRecord, SkillProfile

_conn: sqlite3.Connection | None = None
_conn_lock = threading.RLock()

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS analysis_results (
        assignment_id TEXT PRIMARY KEY,
        user_id TEXT,
        test_id TEXT,
        test_title_ar TEXT,
        test_title_en TEXT,
        overall_score INTEGER NOT NULL,
        category TEXT NOT NULL,
        skill_results_json TEXT NOT NULL,
        strengths_json TEXT NOT NULL,
        weighted_totals_json TEXT NOT NULL,
        open_text_json TEXT,
        analyzed_at TEXT NOT NULL
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_analysis_results_user
    ON analysis_results (user_id, analyzed_at);
    """,
    """
    CREATE TABLE IF NOT EXISTS employee_skill_profiles (
        user_id TEXT NOT NULL,
        skill_id TEXT NOT NULL,
        current_level TEXT NOT NULL,
        last_assessment_score INTEGER NOT NULL,
        improvement_trend TEXT NOT NULL,
        last_assessment_date TEXT NOT NULL,
        PRIMARY KEY (user_id, skill_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS recommendation_status (
        user_id TEXT NOT NULL,
        course_id TEXT NOT NULL,
        status TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, course_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ai_analysis_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        run_id TEXT NOT NULL,
        task TEXT NOT NULL,
        model TEXT NOT NULL,
        schema_valid INTEGER NOT NULL,
        status TEXT NOT NULL,
        error_code TEXT,
        latency_ms INTEGER
    );
    """,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.results_db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            _conn.execute(statement)
        return _conn


def init_store() -> None:
    _get_connection()


def close_store() -> None:
    """Close the shared connection; the next call reopens it from current settings."""
    global _conn
    with _conn_lock:
        if _conn is not None:
            _conn.close()
        _conn = None


def _trend(previous: int | None, current: int) -> str:
    if previous is None or previous == current:
        return "stable"
    return "improving" if previous < current else "declining"


def save_assessment(record: AssessmentRecord) -> None:
    """Persist an analysis and refresh the learner's skill profile in one transaction."""
    conn = _get_connection()
    analyzed_at = record.analyzed_at.isoformat()
    skill_results_json = json.dumps(
        {skill_id: result.model_dump() for skill_id, result in record.skill_results.items()},
        ensure_ascii=False,
    )
    open_text_json = (
        json.dumps(record.open_text_analysis.model_dump(), ensure_ascii=False)
        if record.open_text_analysis is not None
        else None
    )

    with _conn_lock:
        conn.execute("BEGIN")
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO analysis_results (
                    assignment_id, user_id, test_id, test_title_ar, test_title_en,
                    overall_score, category, skill_results_json, strengths_json,
                    weighted_totals_json, open_text_json, analyzed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.assignment_id,
                    record.user_id,
                    record.test_id,
                    record.test_title_ar,
                    record.test_title_en,
                    record.overall_score,
                    record.category,
                    skill_results_json,
                    json.dumps(record.strengths, ensure_ascii=False),
                    json.dumps(record.weighted_totals.model_dump()),
                    open_text_json,
                    analyzed_at,
                ),
            )
            if record.user_id:
                for skill_id, result in record.skill_results.items():
                    row = conn.execute(
                        "SELECT last_assessment_score FROM employee_skill_profiles WHERE user_id = ? AND skill_id = ?",
                        (record.user_id, skill_id),
                    ).fetchone()
                    previous = int(row[0]) if row else None
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO employee_skill_profiles (
                            user_id, skill_id, current_level, last_assessment_score,
                            improvement_trend, last_assessment_date
                        ) VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            record.user_id,
                            skill_id,
                            result.level,
                            result.score,
                            _trend(previous, result.score),
                            analyzed_at,
                        ),
                    )
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise


def update_open_text_analysis(assignment_id: str, analysis_json: str) -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute(
            "UPDATE analysis_results SET open_text_json = ? WHERE assignment_id = ?",
            (analysis_json, assignment_id),
        )


def _row_to_record(row: tuple) -> AssessmentRecord:
    return AssessmentRecord.model_validate(
        {
            "assignment_id": row[0],
            "user_id": row[1],
            "test_id": row[2],
            "test_title_ar": row[3],
            "test_title_en": row[4],
            "overall_score": row[5],
            "category": row[6],
            "skill_results": json.loads(row[7]) if row[7] else {},
            "strengths": json.loads(row[8]) if row[8] else [],
            "weighted_totals": json.loads(row[9]) if row[9] else {},
            "open_text_analysis": json.loads(row[10]) if row[10] else None,
            "analyzed_at": datetime.fromisoformat(row[11]),
        }
    )


_SELECT_ANALYSIS = """
    SELECT assignment_id, user_id, test_id, test_title_ar, test_title_en,
           overall_score, category, skill_results_json, strengths_json,
           weighted_totals_json, open_text_json, analyzed_at
    FROM analysis_results
"""


def get_assessment(assignment_id: str) -> AssessmentRecord | None:
    conn = _get_connection()
    with _conn_lock:
        row = conn.execute(_SELECT_ANALYSIS + " WHERE assignment_id = ?", (assignment_id,)).fetchone()
    if not row:
        return None
    return _row_to_record(row)


def get_latest_assessment_for_user(user_id: str) -> AssessmentRecord | None:
    conn = _get_connection()
    with _conn_lock:
        row = conn.execute(
            _SELECT_ANALYSIS + " WHERE user_id = ? ORDER BY analyzed_at DESC, assignment_id DESC LIMIT 1",
            (user_id,),
        ).fetchone()
    if not row:
        return None
    return _row_to_record(row)


def list_assessments_for_user(user_id: str, limit: int = 50) -> list[AssessmentRecord]:
    """Newest first."""
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            _SELECT_ANALYSIS + " WHERE user_id = ? ORDER BY analyzed_at DESC, assignment_id DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


def get_skill_profiles(user_id: str) -> list[SkillProfile]:
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            """
            SELECT user_id, skill_id, current_level, last_assessment_score,
                   improvement_trend, last_assessment_date
            FROM employee_skill_profiles
            WHERE user_id = ?
            ORDER BY skill_id
            """,
            (user_id,),
        ).fetchall()
    return [
        SkillProfile(
            user_id=row[0],
            skill_id=row[1],
            current_level=row[2],
            last_assessment_score=row[3],
            improvement_trend=row[4],
            last_assessment_date=datetime.fromisoformat(row[5]),
        )
        for row in rows
    ]


def set_recommendation_status(user_id: str, course_id: str, status: str) -> datetime:
    conn = _get_connection()
    updated_at = _utc_now()
    with _conn_lock:
        conn.execute(
            """
            INSERT OR REPLACE INTO recommendation_status (user_id, course_id, status, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, course_id, status, updated_at.isoformat()),
        )
    return updated_at


def get_recommendation_statuses(user_id: str) -> dict[str, str]:
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            "SELECT course_id, status FROM recommendation_status WHERE user_id = ?",
            (user_id,),
        ).fetchall()
    return {row[0]: row[1] for row in rows}


def log_ai_analysis_run(
    *,
    run_id: str,
    task: str,
    model: str,
    schema_valid: bool,
    status: str,
    error_code: str | None,
    latency_ms: int | None,
) -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute(
            """
            INSERT INTO ai_analysis_runs (
                created_at, run_id, task, model, schema_valid, status, error_code, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now().isoformat(),
                run_id,
                task,
                model,
                1 if schema_valid else 0,
                status,
                error_code,
                latency_ms,
            ),
        )
