from sqlalchemy import Column, String, DateTime, Float, Boolean, Integer
from sqlalchemy.orm import relationship
from ..core.database import Base
from ..utils.timezone import get_local_now_naive


class QuizAttempt(Base):
    """One timed quiz attempt by a student"""
    __tablename__ = "quiz_attempts"

    id = Column(String, primary_key=True, index=True)
    quiz_id = Column(String, index=True, nullable=False)
    student_id = Column(String, index=True, nullable=False)
    status = Column(String, default="in_progress")
    started_at = Column(DateTime, default=get_local_now_naive)
    ended_at = Column(DateTime, nullable=True)

    max_allowed_violations = Column(Integer, default=0)
    tab_switch_count = Column(Integer, default=0)
    was_tab_switched = Column(Boolean, default=False)
    is_terminated = Column(Boolean, default=False)
    termination_reason = Column(String, nullable=True)

    score = Column(Float, nullable=True)
    total_points = Column(Float, nullable=True)

    violations = relationship("ProctoringViolation", back_populates="attempt")
    proctoring_logs = relationship("ProctoringLog", back_populates="attempt")

    def __repr__(self):
        return f"<QuizAttempt {self.id} {self.status}>"
