from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload
from database import get_db
from core.security import require_parent
from models.exams import ExamResult
from models.sessions import SESSION_COUNT
from models.students import Student
from models.users import User, UserStudent
from pydantic import BaseModel
from typing import Dict, List, Optional

router = APIRouter(prefix="/api/v1/parent", tags=["Parent Portal"])


# ===========================
#          SCHEMAS
# ===========================

class SessionCard(BaseModel):
    session_number: int
    attended: bool
    payment: float
    quiz_mark: Optional[float]
    time: Optional[str]
    finish_time: Optional[str]
    homework: Dict[str, str]

class ExamResultResponse(BaseModel):
    exam_name: str
    exam_type: str
    attendance: bool
    payment: float
    quiz_mark: Optional[float]

class StudentStats(BaseModel):
    attended: str  # e.g. "6/8"
    total_payment: float

class StudentDashboard(BaseModel):
    id: int
    name: str
    student_code: str
    sheet: str
    stats: StudentStats
    sessions: List[SessionCard]
    exams: List[ExamResultResponse]


# ===========================
#     HELPER FUNCTIONS
# ===========================

def build_session_cards(student: Student) -> List[SessionCard]:
    """All eight cards; sessions not uploaded yet show as not attended"""
    recorded = {s.session_number: s for s in student.sessions}
    cards = []
    for number in range(1, SESSION_COUNT + 1):
        s = recorded.get(number)
        if s is None:
            cards.append(SessionCard(
                session_number=number, attended=False, payment=0, quiz_mark=None,
                time=None, finish_time=None, homework={}
            ))
            continue
        cards.append(SessionCard(
            session_number=number,
            attended=bool(s.attended),
            payment=float(s.payment or 0),
            quiz_mark=s.quiz_mark,
            time=s.time,
            finish_time=s.finish_time,
            homework=s.homework(),
        ))
    return cards


def build_student_dashboard(student: Student, db: Session) -> StudentDashboard:
    cards = build_session_cards(student)
    results = db.query(ExamResult).filter(
        ExamResult.student_id == student.id
    ).options(joinedload(ExamResult.exam)).order_by(ExamResult.id).all()

    return StudentDashboard(
        id=student.id,
        name=student.name,
        student_code=student.student_code,
        sheet=student.sheet.name if student.sheet else "",
        stats=StudentStats(
            attended=f"{sum(1 for c in cards if c.attended)}/{SESSION_COUNT}",
            total_payment=sum(c.payment for c in cards),
        ),
        sessions=cards,
        exams=[
            ExamResultResponse(
                exam_name=r.exam.name,
                exam_type=r.exam.exam_type,
                attendance=bool(r.attendance),
                payment=float(r.payment or 0),
                quiz_mark=r.quiz_mark,
            )
            for r in results
        ],
    )


# ===========================
#        API ENDPOINTS
# ===========================

@router.get("/dashboard", response_model=List[StudentDashboard])
def get_dashboard(
    current_user: User = Depends(require_parent),
    db: Session = Depends(get_db)
):
    """Every student linked to the logged-in parent, with session cards and exam results."""
    students = db.query(Student).join(
        UserStudent, UserStudent.student_id == Student.id
    ).filter(
        UserStudent.user_id == current_user.id
    ).options(
        joinedload(Student.sheet),
        joinedload(Student.sessions)
    ).order_by(Student.id).all()

    return [build_student_dashboard(s, db) for s in students]
