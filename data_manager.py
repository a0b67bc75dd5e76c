import time
import logging
from dataclasses import fields, replace
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Any

from models import Student, Staff, Feedback, StudentStatus


STUDENT_FIELDS = {f.name for f in fields(Student)}

DEFAULT_REMARKS = {
    StudentStatus.CONTACTED: 'Student contacted successfully',
    StudentStatus.INTERESTED: 'Student showed interest in the program',
    StudentStatus.NOT_INTERESTED: 'Student not interested',
    StudentStatus.NOT_REACHABLE: 'Could not reach student',
    StudentStatus.CALL_BACK: 'Student requested to call back later',
}


def duplicate_ids(records) -> List[int]:
    seen = set()
    duplicates = []
    for record in records:
        if record.id in seen and record.id not in duplicates:
            duplicates.append(record.id)
        seen.add(record.id)
    return duplicates


def default_remarks(status) -> str:
    try:
        return DEFAULT_REMARKS.get(StudentStatus.parse(status), 'Status updated')
    except ValueError:
        return 'Status updated'


class DataManager:
    """
    In-memory store of students, staff and feedback.

    Every mutation replaces records by value and is written through to the
    storage before the call returns. Lookups report a missing id with
    ``None``/``False`` instead of raising.
    """

    def __init__(self, storage):
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.students: List[Student] = []
        self.staff: List[Staff] = []
        self.feedback: List[Feedback] = []
        self._last_feedback_id = 0
        self.load_from_storage()

    def load_from_storage(self):
        self.students, self.staff, self.feedback = self.storage.load()
        self._last_feedback_id = max((f.id for f in self.feedback), default=0)

    def save_to_storage(self) -> bool:
        # The storage logs its own failures; memory stays authoritative either way.
        return self.storage.save(self.students, self.staff, self.feedback)

    # Students

    def _student_index(self, student_id: int) -> int:
        for i, student in enumerate(self.students):
            if student.id == student_id:
                return i
        return -1

    def get_student(self, student_id: int) -> Optional[Student]:
        index = self._student_index(student_id)
        return self.students[index] if index != -1 else None

    def add_students(self, new_students: Iterable[Mapping[str, Any]]) -> int:
        """
        Append uploaded students with fresh ids.

        Lifecycle fields are always reset: uploads start unassigned, pending,
        not special and dated today. Records missing a name, phone or
        category, or with a rank that is not a number, are skipped.
        """
        next_id = max((s.id for s in self.students), default=0) + 1
        today = date.today()
        added = []
        for record in new_students:
            missing = [f for f in ('name', 'phone', 'category')
                       if record.get(f) is None or not str(record.get(f)).strip()]
            if missing:
                self.logger.warning(f"Skipping student record without {', '.join(missing)}: {dict(record)!r}")
                continue
            try:
                student = Student(
                    id=next_id,
                    name=str(record['name']).strip(),
                    phone=str(record['phone']).strip(),
                    rank=int(record.get('rank') or 0),
                    category=str(record['category']).strip(),
                    assigned_staff=None,
                    status=StudentStatus.PENDING,
                    is_special=False,
                    upload_date=today,
                )
            except (ValueError, TypeError) as e:
                self.logger.warning(f"Skipping student record with bad rank {dict(record)!r}: {str(e)}")
                continue
            added.append(student)
            next_id += 1

        self.students.extend(added)
        self.save_to_storage()
        self.logger.info(f"Added {len(added)} students")
        return len(added)

    def update_student(self, student_id: int, updates: Mapping[str, Any]) -> bool:
        index = self._student_index(student_id)
        if index == -1:
            return False

        changes = {}
        for key, value in updates.items():
            if key == 'id':
                continue
            if key not in STUDENT_FIELDS:
                self.logger.warning(f"Ignoring unknown student field: {key}")
                continue
            changes[key] = value

        # Same conversion as records loaded from storage
        try:
            updated = Student.from_dict({**self.students[index].to_dict(), **changes})
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Rejected update for student {student_id}: {str(e)}")
            return False

        self.students[index] = updated
        self.save_to_storage()
        return True

    def delete_student(self, student_id: int) -> bool:
        index = self._student_index(student_id)
        if index == -1:
            return False
        del self.students[index]
        self.save_to_storage()
        return True

    def toggle_special(self, student_id: int) -> Optional[bool]:
        student = self.get_student(student_id)
        if student is None:
            return None
        self.update_student(student_id, {'is_special': not student.is_special})
        return not student.is_special

    def get_students_by_staff(self, staff_id: int) -> List[Student]:
        return [s for s in self.students if s.assigned_staff == staff_id]

    def unassigned_students(self) -> List[Student]:
        return [s for s in self.students if s.assigned_staff is None]

    def search_students(self, query: Optional[str] = None, category: Optional[str] = None,
                        status: Optional[str] = None, staff_id: Optional[int] = None,
                        is_special: Optional[bool] = None) -> List[Student]:
        results = list(self.students)

        if query:
            term = query.lower()
            results = [
                s for s in results
                if term in s.name.lower() or term in s.phone or term in str(s.rank)
            ]

        if category:
            results = [s for s in results if s.category == category]
        if status:
            results = [s for s in results if s.status.value == status]
        if staff_id is not None:
            results = [s for s in results if s.assigned_staff == staff_id]
        if is_special is not None:
            results = [s for s in results if s.is_special == is_special]

        return results

    # Assignment

    def assign_student_to_staff(self, student_id: int, staff_id: int) -> bool:
        """
        Point a student at a staff member from this store's own staff list.

        Only staff added with ``add_staff`` are known here, so with user
        accounts as the staff source this always returns False. Routes go
        through ``AssignmentEngine.assign_student_to_staff``, which checks the
        configured staff directory.
        """
        if self.get_staff(staff_id) is None or self._student_index(student_id) == -1:
            return False
        return self.assign_students({student_id: staff_id}) == 1

    def assign_students(self, assignments: Mapping[int, int]) -> int:
        """Overwrite assigned_staff for each student id; one write for the batch."""
        count = 0
        for student_id, staff_id in assignments.items():
            index = self._student_index(student_id)
            if index == -1:
                continue
            self.students[index] = replace(self.students[index], assigned_staff=staff_id)
            count += 1

        if count:
            self.save_to_storage()
        return count

    # Staff

    def get_staff(self, staff_id: int) -> Optional[Staff]:
        return next((m for m in self.staff if m.id == staff_id), None)

    def add_staff(self, name: str, is_active: bool = True) -> Staff:
        member = Staff(id=max((m.id for m in self.staff), default=0) + 1,
                       name=name, is_active=is_active)
        self.staff.append(member)
        self.save_to_storage()
        return member

    # Feedback

    def _next_feedback_id(self) -> int:
        feedback_id = max(int(time.time() * 1000), self._last_feedback_id + 1)
        self._last_feedback_id = feedback_id
        return feedback_id

    def add_feedback(self, student_id: int, staff_id: int, status, remarks: str) -> Optional[int]:
        """
        Record a contact outcome and move the student to that status.

        Returns the new feedback id, or None when the status is not a known
        outcome or the remarks are blank.
        """
        if not StudentStatus.is_valid(status):
            self.logger.warning(f"Rejected feedback for student {student_id}: invalid status {status!r}")
            return None
        if not remarks or not str(remarks).strip():
            self.logger.warning(f"Rejected feedback for student {student_id}: remarks are required")
            return None

        entry = Feedback(
            id=self._next_feedback_id(),
            student_id=student_id,
            staff_id=staff_id,
            status=StudentStatus.parse(status),
            remarks=str(remarks).strip(),
            timestamp=datetime.now(timezone.utc),
        )
        self.feedback.append(entry)

        index = self._student_index(student_id)
        if index != -1:
            self.students[index] = replace(self.students[index], status=entry.status)

        self.save_to_storage()
        return entry.id

    def feedback_for_student(self, student_id: int) -> List[Feedback]:
        return [f for f in self.feedback if f.student_id == student_id]

    def feedback_by_staff(self, staff_id: int) -> List[Feedback]:
        return [f for f in self.feedback if f.staff_id == staff_id]

    def latest_feedback(self, student_id: int) -> Optional[Feedback]:
        entries = self.feedback_for_student(student_id)
        return entries[-1] if entries else None

    # Bulk

    def replace_all(self, students: List[Student], staff: List[Staff], feedback: List[Feedback]):
        """
        Swap in new collections wholesale, as for a backup restore.

        Raises ValueError when a collection repeats an id; nothing changes then.
        """
        for label, records in (('student', students), ('staff', staff), ('feedback', feedback)):
            duplicates = duplicate_ids(records)
            if duplicates:
                raise ValueError(f"Duplicate {label} ids: {duplicates}")

        self.students = list(students)
        self.staff = list(staff)
        self.feedback = list(feedback)
        self._last_feedback_id = max((f.id for f in self.feedback), default=0)
        self.save_to_storage()

    def clear_all_data(self):
        self.replace_all([], [], [])

    def snapshot(self) -> Dict[str, Any]:
        return {
            'students': [s.to_dict() for s in self.students],
            'staff': [m.to_dict() for m in self.staff],
            'feedback': [f.to_dict() for f in self.feedback],
        }
