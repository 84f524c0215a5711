"""
Bulk Import Router
Admins upload the per-session sheet or the cumulative ("shamel") exam sheet.
Rows arrive either already keyed as JSON (`excelData`) or as the raw Excel
file; both go through the same parser filter and reconciler.
"""

import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, Union

from config import CORS_ALLOW_HEADERS
from database import get_db
from core.parser import SESSION_FORMAT, SHAMEL_FORMAT, parse_rows, read_workbook, column_layouts
from core.reconcile import ImportSetupError, import_sessions, import_shamel
from core.security import require_admin
from schemas.imports import SessionImportRequest, ShamelImportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bulk-import", tags=["Bulk Import"])

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


def failure(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def run_import(action):
    """Fatal errors end the whole run; row errors are inside the report."""
    try:
        report = action()
    except ImportSetupError as e:
        logger.error("Import aborted: %s", e)
        return failure(str(e))
    except SQLAlchemyError as e:
        logger.exception("Import failed")
        return failure(f"Database error: {e}")
    except Exception as e:
        logger.exception("Import failed")
        return failure(str(e) or e.__class__.__name__)
    return report.to_response()


def validation_message(exc: Union[ValidationError, RequestValidationError]) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "Invalid request"))
    return "; ".join(parts) or "Invalid request"


async def read_upload(file: UploadFile):
    if not file.filename or not file.filename.lower().endswith((".xlsx", ".xls")):
        return None, failure("Invalid file format. Please upload an Excel file (.xlsx or .xls)", 400)
    contents = await file.read()
    try:
        return read_workbook(contents, file.filename), None
    except Exception as e:
        return None, failure(f"Error reading Excel file: {e}", 400)


# ==========================================
#   PRE-FLIGHT
# ==========================================

@router.options("/sessions")
@router.options("/shamel")
def preflight():
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


# ==========================================
#   JSON ENDPOINTS
# ==========================================

@router.post("/sessions")
def session_import(payload: SessionImportRequest, db: Session = Depends(get_db), admin=Depends(require_admin)):
    """
    Per-session results for one sheet.
    Upserts students, writes session `sessionNumber` (homework into `hwColumn`)
    and provisions parent accounts.
    """
    return run_import(lambda: import_sessions(
        db,
        payload.excelData,
        sheet_name=payload.sheetName,
        session_number=payload.sessionNumber,
        hw_column=payload.hwColumn,
        finish_time=payload.finishTime,
    ))


@router.post("/shamel")
def shamel_import(payload: ShamelImportRequest, db: Session = Depends(get_db), admin=Depends(require_admin)):
    """Cumulative exam results for one sheet; the exam is created on first upload."""
    return run_import(lambda: import_shamel(
        db, payload.excelData, sheet_name=payload.sheetName, exam_name=payload.examName
    ))


# ==========================================
#   FILE UPLOAD ENDPOINTS
# ==========================================

@router.post("/sessions/upload")
async def session_upload(
    file: UploadFile = File(...),
    sheetName: str = Form(...),
    sessionNumber: int = Form(...),
    hwColumn: str = Form(...),
    finishTime: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    admin=Depends(require_admin)
):
    matrix, error = await read_upload(file)
    if error:
        return error
    try:
        payload = SessionImportRequest(
            excelData=parse_rows(matrix, SESSION_FORMAT),
            sheetName=sheetName,
            sessionNumber=sessionNumber,
            hwColumn=hwColumn,
            finishTime=finishTime,
        )
    except ValidationError as e:
        return failure(validation_message(e), 400)
    return session_import(payload, db, admin)


@router.post("/shamel/upload")
async def shamel_upload(
    file: UploadFile = File(...),
    sheetName: str = Form(...),
    examName: str = Form(...),
    db: Session = Depends(get_db),
    admin=Depends(require_admin)
):
    matrix, error = await read_upload(file)
    if error:
        return error
    try:
        payload = ShamelImportRequest(
            excelData=parse_rows(matrix, SHAMEL_FORMAT),
            sheetName=sheetName,
            examName=examName,
        )
    except ValidationError as e:
        return failure(validation_message(e), 400)
    return shamel_import(payload, db, admin)


# ==========================================
#   SAMPLE TEMPLATE
# ==========================================

@router.get("/template")
async def get_sample_template():
    """
    Column layouts of the two sheets. Columns are positional: header text is
    ignored, only the order matters.
    """
    return {
        "layouts": column_layouts(),
        "required_columns": ["id", "name", "parent_phone"],
        "notes": [
            "Rows missing id, name or parent_phone are skipped",
            "attendance: 1 = attended, anything else = absent",
            "hw_status: 0 or blank = complete, 1 = not done, 2 = partial, 3 = cheated",
            "hwColumn selects which homework slot (hw1..hw8) the upload writes",
        ],
    }
