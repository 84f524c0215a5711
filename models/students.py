from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("student_code", "sheet_id", name="uq_students_code_sheet"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_code = Column(String(50), nullable=False, index=True)  # code from the sheet, unique per sheet
    name = Column(String(150), nullable=False)

    # --- CONTACT ---
    student_phone = Column(String(20), nullable=True)
    parent_phone = Column(String(20), nullable=False, index=True)  # parent's login identity

    sheet_id = Column(Integer, ForeignKey("sheets.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # --- RELATIONSHIPS ---
    sheet = relationship("models.sheets.Sheet")
    sessions = relationship(
        "models.sessions.SessionRecord",
        order_by="SessionRecord.session_number",
        back_populates="student",
    )
    exam_results = relationship("models.exams.ExamResult", back_populates="student")
