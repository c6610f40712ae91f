from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..services.proctoring_service import ProctoringService


def get_proctoring_service(db: Session = Depends(get_db)) -> ProctoringService:
    return ProctoringService(db)
