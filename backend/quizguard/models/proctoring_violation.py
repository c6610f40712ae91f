from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..core.database import Base
from ..utils.timezone import get_local_now_naive


class ProctoringViolation(Base):
    __tablename__ = "proctoring_violations"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(String, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    student_id = Column(String, nullable=False)
    violation_type = Column(String, nullable=False)
    severity = Column(String, default="medium")
    description = Column(Text)
    violation_metadata = Column(JSON)
    timestamp = Column(DateTime, default=get_local_now_naive)

    attempt = relationship("QuizAttempt", back_populates="violations")

    def __repr__(self):
        return f"<ProctoringViolation {self.violation_type} for attempt {self.attempt_id}>"
