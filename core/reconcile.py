"""
Import Reconciler
Writes parsed spreadsheet rows into the portal: student, per-student result
(session or shamel exam) and the parent login account, one row at a time.

Every step is its own round-trip and commits on its own. A failing step rolls
back, is recorded against the row and the run moves on to the next row.
"""
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from core.parser import accepted_rows
from core.upsert import insert_ignore, upsert
from core.utils import is_attended
from models.exams import Exam, ExamResult, SHAMEL_EXAM_TYPE
from models.sessions import HwStatus, SessionRecord
from models.sheets import Sheet
from models.students import Student
from models.users import AppRole, User, UserRole, UserStudent

logger = logging.getLogger(__name__)


class ImportSetupError(Exception):
    """The run cannot start (sheet missing, exam cannot be created)"""


class ImportReport:
    def __init__(self, total_rows: int):
        self.total_rows = total_rows
        self.processed_count = 0
        self.errors: List[str] = []

    def to_response(self):
        body = {
            "success": True,
            "processedCount": self.processed_count,
            "totalRows": self.total_rows,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


def _reason(exc: Exception) -> str:
    # DBAPI message without SQLAlchemy's statement dump
    return str(getattr(exc, "orig", None) or exc)


def _step(db: Session, report: ImportReport, label: str, action: Callable):
    """Run one write step. Returns (ok, result)."""
    try:
        result = action()
        db.commit()
        return True, result
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", label, _reason(e))
        report.errors.append(f"{label}: {_reason(e)}")
        return False, None


# ==========================================
#   GROUPING ENTITIES
# ==========================================

def resolve_sheet(db: Session, sheet_name: str) -> int:
    try:
        sheet = db.query(Sheet).filter(Sheet.name == sheet_name).first()
    except SQLAlchemyError as e:
        raise ImportSetupError(f"Failed to find sheet: {_reason(e)}") from e
    if not sheet:
        raise ImportSetupError(f'Sheet "{sheet_name}" not found')
    return sheet.id


def resolve_exam(db: Session, exam_name: str, exam_type: str = SHAMEL_EXAM_TYPE) -> int:
    """Exam by exact name + type, created on first use"""
    try:
        exam_id = insert_ignore(db, Exam, {"name": exam_name, "exam_type": exam_type}, ("name", "exam_type"))
        if exam_id is None:
            exam_id = db.query(Exam.id).filter(Exam.name == exam_name, Exam.exam_type == exam_type).scalar()
        else:
            logger.info("Created new exam: %s", exam_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise ImportSetupError(f"Failed to create exam: {_reason(e)}") from e
    return exam_id


# ==========================================
#   ROW STEPS
# ==========================================

def upsert_student(db: Session, sheet_id: int, row, with_student_phone: bool) -> int:
    values = {
        "student_code": row.id,
        "name": row.name,
        "parent_phone": row.parent_phone,
        "sheet_id": sheet_id,
    }
    update = ["name", "parent_phone"]
    if with_student_phone:
        values["student_phone"] = row.student_phone
        update.append("student_phone")
    return upsert(db, Student, values, ("student_code", "sheet_id"), update)


def upsert_session(db: Session, student_id: int, session_number: int, hw_column: str, finish_time: Optional[str], row) -> int:
    hw_field = f"{hw_column}_status"
    values = {
        "student_id": student_id,
        "session_number": session_number,
        "attended": is_attended(row.attendance),
        "payment": row.payment or 0,
        "quiz_mark": row.quiz_mark,
        "time": row.time,
        "finish_time": finish_time,
        hw_field: HwStatus.from_code(row.hw_status),
    }
    # Other homework slots stay as they are
    update = ["attended", "payment", "quiz_mark", "time", "finish_time", hw_field]
    return upsert(
        db, SessionRecord, values, ("student_id", "session_number"), update,
        extra_set={"updated_at": func.now()},
    )


def upsert_exam_result(db: Session, exam_id: int, student_id: int, row) -> int:
    values = {
        "exam_id": exam_id,
        "student_id": student_id,
        "attendance": is_attended(row.attendance),
        "payment": row.payment or 0,
        "quiz_mark": row.quiz_mark,
    }
    return upsert(db, ExamResult, values, ("exam_id", "student_id"), ["attendance", "payment", "quiz_mark"])


def provision_parent_account(db: Session, parent_phone: str, student_id: int) -> bool:
    """
    Make sure a parent login exists for this phone and can see the student.
    New users must change their password on first login. Returns True when
    the user was created by this call.
    """
    user_id = insert_ignore(
        db, User, {"phone_or_username": parent_phone, "must_change_password": True}, ("phone_or_username",)
    )
    created = user_id is not None
    if not created:
        user_id = db.query(User.id).filter(User.phone_or_username == parent_phone).scalar()

    insert_ignore(db, UserStudent, {"user_id": user_id, "student_id": student_id}, ("user_id", "student_id"))

    # Also covers a user left without a role by an interrupted earlier run
    has_role = db.query(UserRole.id).filter(UserRole.user_id == user_id).first() is not None
    if created or not has_role:
        insert_ignore(db, UserRole, {"user_id": user_id, "role": AppRole.PARENT}, ("user_id", "role"))
    return created


# ==========================================
#   IMPORT RUNS
# ==========================================

def _run_rows(db: Session, rows, write_result: Callable, sheet_id: int, with_student_phone: bool) -> ImportReport:
    rows = accepted_rows(rows)
    report = ImportReport(total_rows=len(rows))

    for row in rows:
        try:
            ok, student_id = _step(
                db, report, f"Student {row.id}",
                lambda: upsert_student(db, sheet_id, row, with_student_phone),
            )
            if not ok:
                continue

            ok, _ = write_result(report, student_id, row)
            if not ok:
                continue

            ok, _ = _step(
                db, report, f"Account for {row.id}",
                lambda: provision_parent_account(db, row.parent_phone, student_id),
            )
            if not ok:
                continue

            report.processed_count += 1
        except Exception as e:
            db.rollback()
            logger.exception("Row processing error")
            report.errors.append(f"Row {row.id}: {e}")

    logger.info("Processing complete: processed=%s errors=%s", report.processed_count, len(report.errors))
    return report


def import_sessions(db: Session, rows, sheet_name: str, session_number: int, hw_column: str, finish_time: Optional[str] = None) -> ImportReport:
    """Per-session upload: students + session `session_number` + parent accounts"""
    logger.info(
        "Received session import: sheet=%s session=%s finish_time=%s hw_column=%s rows=%s",
        sheet_name, session_number, finish_time, hw_column, len(rows),
    )
    sheet_id = resolve_sheet(db, sheet_name)
    logger.info("Found sheet: %s", sheet_id)

    def write_session(report, student_id, row):
        return _step(
            db, report, f"Session for {row.id}",
            lambda: upsert_session(db, student_id, session_number, hw_column, finish_time, row),
        )

    return _run_rows(db, rows, write_session, sheet_id, with_student_phone=True)


def import_shamel(db: Session, rows, sheet_name: str, exam_name: str) -> ImportReport:
    """Cumulative exam upload: students + one result each for exam `exam_name`"""
    logger.info("Received shamel import: sheet=%s exam=%s rows=%s", sheet_name, exam_name, len(rows))
    sheet_id = resolve_sheet(db, sheet_name)
    logger.info("Found sheet: %s", sheet_id)
    exam_id = resolve_exam(db, exam_name)

    def write_result(report, student_id, row):
        return _step(
            db, report, f"Exam result for {row.id}",
            lambda: upsert_exam_result(db, exam_id, student_id, row),
        )

    return _run_rows(db, rows, write_result, sheet_id, with_student_phone=False)
