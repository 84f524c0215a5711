from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from database import get_db
from core.security import require_admin
from models.sheets import Sheet
from models.students import Student
from pydantic import BaseModel

router = APIRouter(prefix="/api/v1/sheets", tags=["Sheets"])

# =======================
# 1. PYDANTIC SCHEMAS
# =======================
class SheetCreate(BaseModel):
    name: str

# =======================
# 2. SHEET APIs
# =======================
@router.get("")
def list_sheets(db: Session = Depends(get_db)):
    counts = dict(
        db.query(Student.sheet_id, func.count(Student.id)).group_by(Student.sheet_id).all()
    )
    return [
        {"id": s.id, "name": s.name, "student_count": counts.get(s.id, 0)}
        for s in db.query(Sheet).order_by(Sheet.name).all()
    ]

@router.post("")
def create_sheet(item: SheetCreate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    name = item.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Sheet name is required")

    existing = db.query(Sheet).filter(Sheet.name == name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Sheet already exists")

    new_sheet = Sheet(name=name)
    db.add(new_sheet)
    db.commit()
    return {"message": "Sheet Created", "id": new_sheet.id}
