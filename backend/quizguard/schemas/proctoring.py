from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict, Any, List, Literal


SignalType = Literal["visibilitychange", "blur", "contextmenu", "keydown"]


class AttemptStart(BaseModel):
    quiz_id: str
    student_id: str
    max_allowed_violations: Optional[int] = Field(default=None, ge=0)


class AttemptEnd(BaseModel):
    reason: Literal["submitted", "timed_out"] = "submitted"
    score: Optional[float] = None
    total_points: Optional[float] = None


class Attempt(BaseModel):
    id: str
    quiz_id: str
    student_id: str
    status: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    max_allowed_violations: int
    tab_switch_count: int
    was_tab_switched: bool
    is_terminated: bool
    termination_reason: Optional[str] = None
    score: Optional[float] = None
    total_points: Optional[float] = None
    is_monitored: bool = False

    class Config:
        from_attributes = True


class SignalCreate(BaseModel):
    type: SignalType
    hidden: Optional[bool] = None
    key: Optional[str] = None
    ctrl_key: bool = False
    shift_key: bool = False
    alt_key: bool = False
    meta_key: bool = False
    metadata: Optional[Dict[str, Any]] = None


class SignalOutcome(BaseModel):
    attempt_id: str
    status: str
    violation_count: int
    max_allowed_violations: int
    is_over_threshold: bool
    warning: bool
    counted: bool
    default_prevented: bool
    terminated: bool


class Violation(BaseModel):
    id: int
    attempt_id: str
    student_id: str
    violation_type: str
    severity: str
    description: Optional[str] = None
    violation_metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class TimelineEntry(BaseModel):
    timestamp: datetime
    display_time: str
    type: str
    severity: str


class ViolationStatistics(BaseModel):
    attempt_id: str
    total_violations: int
    by_type: Dict[str, int]
    by_severity: Dict[str, int]
    timeline: List[TimelineEntry]
