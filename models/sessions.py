import enum
from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

SESSION_COUNT = 8
HW_COLUMNS = [f"hw{n}" for n in range(1, SESSION_COUNT + 1)]


class HwStatus(str, enum.Enum):
    COMPLETE = "complete"
    NOT_DONE = "not_done"
    PARTIAL = "partial"
    CHEATED = "cheated"

    @classmethod
    def from_code(cls, value):
        """
        Sheet homework code -> status.
        Blank, 0 or anything unparseable counts as complete (no recorded problem).
        """
        if value is None or isinstance(value, bool):
            return cls.COMPLETE
        try:
            code = float(str(value).strip())
        except ValueError:
            return cls.COMPLETE
        return _HW_CODES.get(code, cls.COMPLETE)


_HW_CODES = {
    1.0: HwStatus.NOT_DONE,
    2.0: HwStatus.PARTIAL,
    3.0: HwStatus.CHEATED,
}


def _hw_status_column():
    return Column(
        Enum(HwStatus, name="hw_status", values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )


# One of the eight numbered class meetings of a student
class SessionRecord(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        UniqueConstraint("student_id", "session_number", name="uq_sessions_student_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    session_number = Column(Integer, nullable=False)

    attended = Column(Boolean, default=False)
    payment = Column(Float, default=0.0)
    quiz_mark = Column(Float, nullable=True)
    time = Column(String(20), nullable=True)         # clock-in
    finish_time = Column(String(20), nullable=True)  # clock-out

    # Homework slots; an upload writes exactly one of them
    hw1_status = _hw_status_column()
    hw2_status = _hw_status_column()
    hw3_status = _hw_status_column()
    hw4_status = _hw_status_column()
    hw5_status = _hw_status_column()
    hw6_status = _hw_status_column()
    hw7_status = _hw_status_column()
    hw8_status = _hw_status_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    student = relationship("models.students.Student", back_populates="sessions")

    def homework(self):
        """Recorded homework statuses keyed by slot, e.g. {"hw2": "partial"}"""
        result = {}
        for slot in HW_COLUMNS:
            status = getattr(self, f"{slot}_status")
            if status is not None:
                result[slot] = status.value
        return result
