import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping

from models import Staff, Student


@dataclass(frozen=True)
class AssignmentResult:
    count: int
    message: str
    category: str = 'success'


def round_robin(students: List[Student], targets: List[Staff]) -> Dict[int, int]:
    """Map the student at position i to the target at position i mod len(targets)."""
    return {
        student.id: targets[index % len(targets)].id
        for index, student in enumerate(students)
    }


class AssignmentEngine:
    """
    Distributes students to staff.

    Assigning an already assigned student overwrites the previous staff
    member; no call refuses a reassignment.
    """

    def __init__(self, data_manager, directory, aggregator, special_target_limit: int = 2):
        self.logger = logging.getLogger(__name__)
        self.data_manager = data_manager
        self.directory = directory
        self.aggregator = aggregator
        self.special_target_limit = special_target_limit

    def auto_assign_students(self) -> int:
        """Spread every unassigned student over the active staff in turn."""
        active_staff = self.directory.active_staff()
        unassigned = self.data_manager.unassigned_students()

        if not active_staff or not unassigned:
            return 0

        count = self.data_manager.assign_students(round_robin(unassigned, active_staff))
        self.logger.info(f"Auto-assigned {count} students across {len(active_staff)} staff")
        return count

    def assign_student_to_staff(self, student_id: int, staff_id: int) -> bool:
        if self.data_manager.get_student(student_id) is None:
            return False
        if self.directory.find_staff(staff_id) is None:
            return False
        return self.data_manager.assign_students({student_id: staff_id}) == 1

    def apply_manual_assignments(self, assignments: Mapping[int, int]) -> int:
        assigned = 0
        for student_id, staff_id in assignments.items():
            if self.assign_student_to_staff(student_id, staff_id):
                assigned += 1
        return assigned

    def special_candidates(self) -> List[Student]:
        return [s for s in self.data_manager.students if s.is_special and s.assigned_staff is None]

    def assign_special_students(self) -> AssignmentResult:
        """
        Route unassigned special students to the best performers.

        Only the first ``special_target_limit`` entries of the current ranking
        receive students, in round robin. Missing candidates or missing
        performers give a zero count with an explanatory message.
        """
        candidates = self.special_candidates()
        if not candidates:
            return AssignmentResult(0, 'No unassigned special students found.', 'warning')

        top_performers = self.aggregator.get_top_performing_staff()[:self.special_target_limit]
        if not top_performers:
            return AssignmentResult(
                0, 'No staff with performance data available for special assignment.', 'warning'
            )

        targets = [Staff(id=r.staff_id, name=r.name) for r in top_performers]
        count = self.data_manager.assign_students(round_robin(candidates, targets))
        names = ', '.join(t.name for t in targets)
        self.logger.info(f"Assigned {count} special students to {names}")
        return AssignmentResult(count, f'{count} special students assigned to {names}.')

    def assign_special_to_staff(self, staff_id: int) -> int:
        """Give every unassigned special student to one chosen staff member."""
        if self.directory.find_staff(staff_id) is None:
            return 0
        candidates = self.special_candidates()
        return self.data_manager.assign_students({s.id: staff_id for s in candidates})
