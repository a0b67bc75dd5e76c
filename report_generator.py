import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from models import Report, StaffReport, StudentBreakdown, StudentStatus, percentage_label


class ReportGenerator:
    """
    Builds reports and flat export records from the current data.

    Nothing here writes to the data manager, so reports can be generated as
    often as needed.
    """

    def __init__(self, data_manager, directory, aggregator, recent_feedback_limit: int = 10):
        self.logger = logging.getLogger(__name__)
        self.data_manager = data_manager
        self.directory = directory
        self.aggregator = aggregator
        self.recent_feedback_limit = recent_feedback_limit

    def generate_report(self) -> Report:
        return Report(
            generated_at=datetime.now(timezone.utc),
            statistics=self.aggregator.get_statistics(),
            staff_performance=self.aggregator.get_staff_performance(),
            student_breakdown=self.get_student_breakdown(),
            feedback=self.recent_feedback(),
        )

    def recent_feedback(self, entries=None) -> List:
        entries = self.data_manager.feedback if entries is None else entries
        if self.recent_feedback_limit <= 0:
            return []
        return list(entries[-self.recent_feedback_limit:])

    def get_student_breakdown(self) -> StudentBreakdown:
        students = self.data_manager.students
        by_category = Counter(s.category for s in students)
        by_status = Counter(s.status.value for s in students)
        by_staff = Counter(
            self.directory.staff_name(s.assigned_staff)
            for s in students if s.assigned_staff is not None
        )
        return StudentBreakdown(
            by_category=dict(by_category),
            by_status=dict(by_status),
            by_staff=dict(by_staff),
        )

    def generate_staff_report(self, staff_id: int) -> Optional[StaffReport]:
        member = self.directory.find_staff(staff_id)
        if member is None:
            return None

        students = self.data_manager.get_students_by_staff(staff_id)
        completed = sum(1 for s in students if s.is_completed)
        return StaffReport(
            staff_id=member.id,
            staff_name=member.name,
            generated_at=datetime.now(timezone.utc),
            total_assigned=len(students),
            completed=completed,
            pending=len(students) - completed,
            completion_rate=percentage_label(completed, len(students)),
            status_breakdown=dict(Counter(s.status.value for s in students)),
            recent_feedback=self.recent_feedback(self.data_manager.feedback_by_staff(staff_id)),
        )

    # Export records. Key order is column order.

    def _student_name(self, student_id: int) -> str:
        student = self.data_manager.get_student(student_id)
        return student.name if student else 'Unknown'

    def student_export_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for student in self.data_manager.students:
            if student.assigned_staff is None:
                assigned_staff = 'Unassigned'
            else:
                assigned_staff = self.directory.staff_name(student.assigned_staff)
            rows.append({
                'Student Name': student.name,
                'Phone': student.phone,
                'EAMCET Rank': student.rank,
                'Category': student.category,
                'Status': student.status.value,
                'Assigned Staff': assigned_staff,
                'Upload Date': student.upload_date.isoformat(),
                'Special Student': 'Yes' if student.is_special else 'No',
            })
        return rows

    def report_export_rows(self, report: Report, generated_by: str = 'Admin') -> List[Dict[str, Any]]:
        stats = report.statistics
        rows = [{
            'Report Type': 'Student Outreach Report',
            'Generated Date': report.generated_at.date().isoformat(),
            'Generated By': generated_by,
            'Total Students': stats.total_students,
            'Assigned Students': stats.assigned_students,
            'Pending Students': stats.pending_students,
            'Completed Students': stats.completed_students,
            'Active Staff': stats.active_staff,
            'Completion Rate': f"{stats.completion_rate}%",
            'Assignment Rate': f"{stats.assignment_rate}%",
        }]

        for staff in report.staff_performance:
            rows.append({
                'Report Type': 'Staff Performance',
                'Staff Name': staff.staff_name,
                'Students Assigned': staff.assigned_count,
                'Completed': staff.completed_count,
                'Pending': staff.pending_count,
                'Completion Rate': f"{staff.completion_rate}%",
                'Feedback Entries': staff.feedback_count,
            })

        for entry in report.feedback:
            rows.append({
                'Report Type': 'Recent Feedback',
                'Student Name': self._student_name(entry.student_id),
                'Staff Name': self.directory.staff_name(entry.staff_id),
                'Status': entry.status.value,
                'Remarks': entry.remarks,
                'Date': entry.timestamp.strftime('%Y-%m-%d'),
                'Time': entry.timestamp.strftime('%H:%M:%S'),
            })

        return rows

    def staff_student_export_rows(self, staff_id: int, include_pending: bool = True,
                                  include_feedback: bool = True) -> List[Dict[str, Any]]:
        students = self.data_manager.get_students_by_staff(staff_id)
        if not include_pending:
            students = [s for s in students if s.status != StudentStatus.PENDING]

        rows = []
        for student in students:
            feedback = self.data_manager.latest_feedback(student.id) if include_feedback else None
            rows.append({
                'Student Name': student.name,
                'Phone': student.phone,
                'EAMCET Rank': student.rank,
                'Category': student.category,
                'Status': student.status.value,
                'Special Student': 'Yes' if student.is_special else 'No',
                'Last Feedback': feedback.remarks if feedback else 'No feedback',
                'Last Updated': feedback.timestamp.strftime('%Y-%m-%d') if feedback else 'Never',
                'Assigned Date': student.upload_date.isoformat(),
            })
        return rows

    def staff_feedback_export_rows(self, staff_id: int) -> List[Dict[str, Any]]:
        rows = []
        for entry in self.data_manager.feedback_by_staff(staff_id):
            student = self.data_manager.get_student(entry.student_id)
            rows.append({
                'Student Name': student.name if student else 'Unknown',
                'Student Rank': student.rank if student else 'N/A',
                'Student Category': student.category if student else 'N/A',
                'Feedback Status': entry.status.value,
                'Remarks': entry.remarks,
                'Date': entry.timestamp.strftime('%Y-%m-%d'),
                'Time': entry.timestamp.strftime('%H:%M:%S'),
            })
        return rows
