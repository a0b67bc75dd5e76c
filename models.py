# Records are immutable values. Updates go through dataclasses.replace and the
# new value replaces the old one in the owning collection.
import enum
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Any


class StudentStatus(str, enum.Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    INTERESTED = "interested"
    NOT_INTERESTED = "not-interested"
    NOT_REACHABLE = "not-reachable"
    CALL_BACK = "call-back"

    @classmethod
    def parse(cls, value) -> "StudentStatus":
        """Accept an enum member or its wire string; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    @classmethod
    def is_valid(cls, value) -> bool:
        try:
            cls.parse(value)
            return True
        except ValueError:
            return False


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_int(value) -> Optional[int]:
    if value is None or value == '':
        return None
    return int(value)


@dataclass(frozen=True)
class Student:
    id: int
    name: str
    phone: str
    rank: int
    category: str
    assigned_staff: Optional[int] = None
    status: StudentStatus = StudentStatus.PENDING
    is_special: bool = False
    upload_date: date = field(default_factory=date.today)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_staff is not None

    @property
    def is_completed(self) -> bool:
        return self.status != StudentStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'rank': self.rank,
            'category': self.category,
            'assigned_staff': self.assigned_staff,
            'status': self.status.value,
            'is_special': self.is_special,
            'upload_date': self.upload_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Student":
        return cls(
            id=int(data['id']),
            name=str(data['name']),
            phone=str(data['phone']),
            rank=int(data.get('rank') or 0),
            category=str(data.get('category', '')),
            assigned_staff=_optional_int(data.get('assigned_staff')),
            status=StudentStatus.parse(data.get('status', StudentStatus.PENDING)),
            is_special=bool(data.get('is_special', False)),
            upload_date=_parse_date(data.get('upload_date') or date.today()),
        )


@dataclass(frozen=True)
class Staff:
    id: int
    name: str
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Staff":
        return cls(id=int(data['id']), name=str(data['name']),
                   is_active=bool(data.get('is_active', True)))


@dataclass(frozen=True)
class User:
    """Account known to the identity directory. Staff accounts double as staff members."""
    id: int
    name: str
    email: str
    role: UserRole = UserRole.STAFF
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_staff(self) -> Staff:
        return Staff(id=self.id, name=self.name, is_active=self.is_active)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=int(data['id']),
            name=str(data['name']),
            email=str(data.get('email', '')),
            role=UserRole(data.get('role', UserRole.STAFF)),
            is_active=bool(data.get('is_active', True)),
            created_at=_parse_datetime(data.get('created_at') or datetime.now(timezone.utc)),
        )


@dataclass(frozen=True)
class Feedback:
    id: int
    student_id: int
    staff_id: int
    status: StudentStatus
    remarks: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'student_id': self.student_id,
            'staff_id': self.staff_id,
            'status': self.status.value,
            'remarks': self.remarks,
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feedback":
        return cls(
            id=int(data['id']),
            student_id=int(data['student_id']),
            staff_id=int(data['staff_id']),
            status=StudentStatus.parse(data['status']),
            remarks=str(data.get('remarks', '')),
            timestamp=_parse_datetime(data['timestamp']),
        )


@dataclass(frozen=True)
class StaffRanking:
    """Ranking entry; completion_rate is a fraction between 0 and 1."""
    staff_id: int
    name: str
    assigned_count: int
    completed_count: int
    completion_rate: float

    @property
    def completion_percent(self) -> float:
        return round(self.completion_rate * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['completion_percent'] = self.completion_percent
        return data


@dataclass(frozen=True)
class StaffPerformance:
    staff_id: int
    staff_name: str
    assigned_count: int
    completed_count: int
    pending_count: int
    completion_rate: str
    feedback_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Statistics:
    total_students: int
    assigned_students: int
    pending_students: int
    completed_students: int
    active_staff: int
    special_students: int
    assignment_rate: float
    completion_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StudentBreakdown:
    by_category: Dict[str, int]
    by_status: Dict[str, int]
    by_staff: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'by_category': dict(self.by_category),
            'by_status': dict(self.by_status),
            'by_staff': dict(self.by_staff),
        }


@dataclass(frozen=True)
class Report:
    generated_at: datetime
    statistics: Statistics
    staff_performance: List[StaffPerformance]
    student_breakdown: StudentBreakdown
    feedback: List[Feedback]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generated_at': self.generated_at.isoformat(),
            'statistics': self.statistics.to_dict(),
            'staff_performance': [p.to_dict() for p in self.staff_performance],
            'student_breakdown': self.student_breakdown.to_dict(),
            'feedback': [f.to_dict() for f in self.feedback],
        }


@dataclass(frozen=True)
class StaffReport:
    staff_id: int
    staff_name: str
    generated_at: datetime
    total_assigned: int
    completed: int
    pending: int
    completion_rate: str
    status_breakdown: Dict[str, int]
    recent_feedback: List[Feedback]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'staff_id': self.staff_id,
            'staff_name': self.staff_name,
            'generated_at': self.generated_at.isoformat(),
            'total_assigned': self.total_assigned,
            'completed': self.completed,
            'pending': self.pending,
            'completion_rate': self.completion_rate,
            'status_breakdown': dict(self.status_breakdown),
            'recent_feedback': [f.to_dict() for f in self.recent_feedback],
        }


def percentage(part: int, whole: int) -> float:
    """Percentage rounded to one decimal; 0.0 when whole is zero."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def percentage_label(part: int, whole: int) -> str:
    return f"{percentage(part, whole):.1f}"


__all__ = [
    'StudentStatus', 'UserRole', 'Student', 'Staff', 'User', 'Feedback',
    'StaffRanking', 'StaffPerformance', 'Statistics', 'StudentBreakdown',
    'Report', 'StaffReport', 'percentage', 'percentage_label',
]
