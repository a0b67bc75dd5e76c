import logging
from typing import List, Optional

from models import (
    StaffRanking, StaffPerformance, Statistics, StudentStatus,
    percentage, percentage_label,
)


class PerformanceAggregator:
    """Read-only metrics over the data manager and the staff directory."""

    def __init__(self, data_manager, directory, top_performer_limit: int = 3):
        self.logger = logging.getLogger(__name__)
        self.data_manager = data_manager
        self.directory = directory
        self.top_performer_limit = top_performer_limit

    def get_top_performing_staff(self, limit: Optional[int] = None) -> List[StaffRanking]:
        """
        Rank active staff by completion rate.

        Staff without assigned students are left out. Equal rates are ordered
        by completed count, highest first; full ties keep directory order.
        Always computed from current state.
        """
        limit = self.top_performer_limit if limit is None else limit
        rankings = []
        for member in self.directory.active_staff():
            assigned = self.data_manager.get_students_by_staff(member.id)
            if not assigned:
                continue
            completed = sum(1 for s in assigned if s.is_completed)
            rankings.append(StaffRanking(
                staff_id=member.id,
                name=member.name,
                assigned_count=len(assigned),
                completed_count=completed,
                completion_rate=completed / len(assigned),
            ))

        rankings.sort(key=lambda r: (r.completion_rate, r.completed_count), reverse=True)
        return rankings[:limit]

    def get_statistics(self) -> Statistics:
        students = self.data_manager.students
        total = len(students)
        assigned = sum(1 for s in students if s.is_assigned)
        pending = sum(1 for s in students if s.status == StudentStatus.PENDING)
        completed = total - pending

        return Statistics(
            total_students=total,
            assigned_students=assigned,
            pending_students=pending,
            completed_students=completed,
            active_staff=len(self.directory.active_staff()),
            special_students=sum(1 for s in students if s.is_special),
            assignment_rate=percentage(assigned, total),
            completion_rate=percentage(completed, total),
        )

    def get_staff_performance(self) -> List[StaffPerformance]:
        performance = []
        for member in self.directory.all_staff():
            assigned = self.data_manager.get_students_by_staff(member.id)
            completed = sum(1 for s in assigned if s.is_completed)
            performance.append(StaffPerformance(
                staff_id=member.id,
                staff_name=member.name,
                assigned_count=len(assigned),
                completed_count=completed,
                pending_count=len(assigned) - completed,
                completion_rate=percentage_label(completed, len(assigned)),
                feedback_count=len(self.data_manager.feedback_by_staff(member.id)),
            ))
        return performance
