from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from ....api.deps import get_proctoring_service
from ....schemas.proctoring import (
    Attempt,
    AttemptEnd,
    AttemptStart,
    SignalCreate,
    SignalOutcome,
    Violation,
    ViolationStatistics,
)
from ....services.proctoring_service import (
    AttemptClosedError,
    AttemptNotFoundError,
    ProctoringService,
)

router = APIRouter()


def _not_found(exc: AttemptNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _conflict(exc: AttemptClosedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("/attempts", response_model=Attempt, status_code=status.HTTP_201_CREATED)
async def start_attempt(
    payload: AttemptStart,
    service: ProctoringService = Depends(get_proctoring_service)
):
    """Start a proctored quiz attempt"""
    attempt = service.start_attempt(
        payload.quiz_id,
        payload.student_id,
        max_allowed_violations=payload.max_allowed_violations
    )
    return service.describe(attempt)


@router.get("/attempts/{attempt_id}", response_model=Attempt)
async def get_attempt(
    attempt_id: str,
    service: ProctoringService = Depends(get_proctoring_service)
):
    try:
        attempt = service.get_attempt(attempt_id)
    except AttemptNotFoundError as e:
        raise _not_found(e)
    return service.describe(attempt)


@router.post("/attempts/{attempt_id}/signals", response_model=SignalOutcome)
async def record_signal(
    attempt_id: str,
    signal: SignalCreate,
    service: ProctoringService = Depends(get_proctoring_service)
):
    """Report a focus, visibility, keyboard or context-menu signal from the quiz page"""
    try:
        return service.record_signal(attempt_id, signal)
    except AttemptNotFoundError as e:
        raise _not_found(e)
    except AttemptClosedError as e:
        raise _conflict(e)


@router.post("/attempts/{attempt_id}/end", response_model=Attempt)
async def end_attempt(
    attempt_id: str,
    payload: AttemptEnd,
    service: ProctoringService = Depends(get_proctoring_service)
):
    """Submit or time out an attempt; monitoring stops before the attempt is closed"""
    try:
        attempt = service.end_attempt(
            attempt_id,
            reason=payload.reason,
            score=payload.score,
            total_points=payload.total_points
        )
    except AttemptNotFoundError as e:
        raise _not_found(e)
    except AttemptClosedError as e:
        raise _conflict(e)
    return service.describe(attempt)


@router.get("/violations/{attempt_id}", response_model=List[Violation])
async def get_attempt_violations(
    attempt_id: str,
    service: ProctoringService = Depends(get_proctoring_service)
):
    """Get all violations for an attempt, newest first"""
    try:
        return service.list_violations(attempt_id)
    except AttemptNotFoundError as e:
        raise _not_found(e)


@router.get("/statistics/{attempt_id}", response_model=ViolationStatistics)
async def get_violation_statistics(
    attempt_id: str,
    service: ProctoringService = Depends(get_proctoring_service)
):
    try:
        return service.violation_statistics(attempt_id)
    except AttemptNotFoundError as e:
        raise _not_found(e)
