from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

SHAMEL_EXAM_TYPE = "shamel"

# 1. EXAM (a cumulative test spanning a whole group)
class Exam(Base):
    __tablename__ = "exams"
    __table_args__ = (
        UniqueConstraint("name", "exam_type", name="uq_exams_name_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    exam_type = Column(String(20), nullable=False, default=SHAMEL_EXAM_TYPE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# 2. EXAM RESULT (one per student per exam)
class ExamResult(Base):
    __tablename__ = "exam_results"
    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_results_exam_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)

    attendance = Column(Boolean, default=False)
    payment = Column(Float, default=0.0)
    quiz_mark = Column(Float, nullable=True)

    exam = relationship("Exam")
    student = relationship("models.students.Student", back_populates="exam_results")
