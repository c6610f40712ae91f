from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Integer
from sqlalchemy.orm import relationship
from ..core.database import Base
from ..utils.timezone import get_local_now_naive


class ProctoringLog(Base):
    __tablename__ = "proctoring_logs"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(String, ForeignKey("quiz_attempts.id"), index=True)
    timestamp = Column(DateTime, default=get_local_now_naive)
    event_type = Column(String, index=True)
    event_data = Column(Text, nullable=True)

    attempt = relationship("QuizAttempt", back_populates="proctoring_logs")
