from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from core.utils import safe_str, safe_float, safe_time, cell_or_none
from models.sessions import HW_COLUMNS, SESSION_COUNT

# ===========================
#      ROW SCHEMAS
# ===========================
# Field names mirror the keys the upload page sends for each spreadsheet row.

class ShamelRow(BaseModel):
    id: Optional[str] = None  # student code
    name: Optional[str] = None
    parent_phone: Optional[str] = None
    attendance: Optional[Any] = None  # raw cell, see is_attended
    payment: Optional[float] = None
    quiz_mark: Optional[float] = None

    @field_validator("id", "name", "parent_phone", mode="before")
    @classmethod
    def clean_text(cls, value):
        return safe_str(value)

    @field_validator("payment", "quiz_mark", mode="before")
    @classmethod
    def clean_number(cls, value):
        return safe_float(value)

    @field_validator("attendance", mode="before")
    @classmethod
    def clean_attendance(cls, value):
        return cell_or_none(value)

    def is_complete(self) -> bool:
        """Rows without code, name and parent phone are dropped without an error"""
        return bool(self.id and self.name and self.parent_phone)


class SessionRow(ShamelRow):
    student_phone: Optional[str] = None
    time: Optional[str] = None  # clock-in
    hw_status: Optional[Any] = None  # raw homework code, see HwStatus.from_code

    @field_validator("student_phone", mode="before")
    @classmethod
    def clean_phone(cls, value):
        return safe_str(value)

    @field_validator("time", mode="before")
    @classmethod
    def clean_time(cls, value):
        return safe_time(value)

    @field_validator("hw_status", mode="before")
    @classmethod
    def clean_hw(cls, value):
        return cell_or_none(value)


# ===========================
#      REQUEST SCHEMAS
# ===========================

class SessionImportRequest(BaseModel):
    excelData: List[SessionRow]
    sheetName: str
    sessionNumber: int = Field(..., ge=1, le=SESSION_COUNT)
    finishTime: Optional[str] = None
    hwColumn: str

    @field_validator("sheetName")
    @classmethod
    def strip_sheet(cls, value: str):
        value = value.strip()
        if not value:
            raise ValueError("sheetName is required")
        return value

    @field_validator("finishTime", mode="before")
    @classmethod
    def clean_finish(cls, value):
        return safe_time(value)

    @field_validator("hwColumn")
    @classmethod
    def check_hw_column(cls, value: str):
        value = value.strip().lower()
        if value not in HW_COLUMNS:
            raise ValueError(f"hwColumn must be one of {', '.join(HW_COLUMNS)}")
        return value


class ShamelImportRequest(BaseModel):
    excelData: List[ShamelRow]
    sheetName: str
    examName: str

    @field_validator("sheetName", "examName")
    @classmethod
    def required_text(cls, value: str, info):
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} is required")
        return value
