import pandas as pd
import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
import os
import logging
from typing import Optional, Dict, List, Any

from models import Report


REQUIRED_COLUMNS = ['name', 'phone', 'rank', 'category']


class ExcelHandler:
    def __init__(self, export_folder: str = 'exports'):
        self.logger = logging.getLogger(__name__)
        self.export_folder = export_folder

    def read_student_data(self, filepath: str) -> Optional[List[Dict[str, Any]]]:
        """
        Read an uploaded roster from a CSV or Excel file.
        Expected columns: Name, Phone, Rank, Category (common variants accepted).
        Rows missing any of them are dropped.
        """
        try:
            if filepath.lower().endswith('.csv'):
                df = pd.read_csv(filepath, dtype=str)
            else:
                df = pd.read_excel(filepath, dtype=str)

            # Normalize column names (handle case variations and spaces)
            df.columns = df.columns.str.strip().str.lower().str.replace(' ', '_')

            column_mappings = {
                'name': ['name', 'student_name', 'full_name'],
                'phone': ['phone', 'contact', 'contact_number', 'mobile'],
                'rank': ['rank', 'eamcet_rank'],
                'category': ['category', 'caste'],
            }

            mapped_columns = {}
            for expected_col, possible_names in column_mappings.items():
                for possible_name in possible_names:
                    if possible_name in df.columns:
                        mapped_columns[expected_col] = possible_name
                        break

            missing_columns = [col for col in REQUIRED_COLUMNS if col not in mapped_columns]
            if missing_columns:
                self.logger.error(f"Missing columns: {missing_columns}")
                return None

            result_df = pd.DataFrame()
            for standard_name, original_name in mapped_columns.items():
                result_df[standard_name] = df[original_name]

            result_df = self._clean_student_data(result_df)
            self.logger.info(f"Read {len(result_df)} valid students from {filepath}")
            return result_df.to_dict('records')

        except Exception as e:
            self.logger.error(f"Error reading student file: {str(e)}")
            return None

    def _clean_student_data(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop incomplete rows and normalise values.
        """
        df = df.dropna(subset=REQUIRED_COLUMNS).copy()

        for col in REQUIRED_COLUMNS:
            df[col] = df[col].astype(str).str.strip()

        # Blank cells survive dropna as empty strings
        complete = (df[REQUIRED_COLUMNS] != '').all(axis=1)
        df = df[complete].copy()

        df['rank'] = pd.to_numeric(df['rank'], errors='coerce').fillna(0).astype(int)
        return df

    def export_to_csv(self, records: List[Dict[str, Any]], filename: str) -> Optional[str]:
        """
        Write flat records as comma separated text.

        Headers come from the first record. Every value is wrapped in double
        quotes as-is; quotes inside values are not escaped, matching files
        produced by earlier versions of the tracker.
        """
        if not records:
            return None

        try:
            headers = list(records[0].keys())
            lines = [','.join(headers)]
            for row in records:
                lines.append(','.join(f'"{self._csv_value(row.get(header))}"' for header in headers))

            filepath = os.path.join(self.export_folder, filename)
            with open(filepath, 'w', encoding='utf-8', newline='') as handle:
                handle.write('\n'.join(lines))

            self.logger.info(f"Exported {len(records)} records to {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error exporting CSV: {str(e)}")
            return None

    def _csv_value(self, value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    def export_report_workbook(self, report: Report, feedback_rows: List[Dict[str, Any]],
                               filename: Optional[str] = None) -> Optional[str]:
        """
        Export the outreach report as a formatted workbook.
        """
        try:
            wb = openpyxl.Workbook()
            ws = wb.active
            ws.title = "Outreach Report"

            header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
            border = Border(
                left=Side(style='thin'),
                right=Side(style='thin'),
                top=Side(style='thin'),
                bottom=Side(style='thin')
            )
            center_alignment = Alignment(horizontal='center', vertical='center')

            ws.merge_cells('A1:G1')
            title_cell = ws.cell(row=1, column=1, value="Student Outreach Report")
            title_cell.font = Font(size=16, bold=True)
            title_cell.alignment = Alignment(horizontal='center')

            ws.cell(row=2, column=1, value=f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
            ws.cell(row=2, column=1).font = Font(size=10, italic=True)

            # Statistics section
            current_row = 4
            ws.cell(row=current_row, column=1, value="Overall Statistics:").font = Font(bold=True, size=12)
            current_row += 1

            stats = report.statistics
            stat_lines = [
                f"Total Students: {stats.total_students}",
                f"Assigned Students: {stats.assigned_students}",
                f"Pending Students: {stats.pending_students}",
                f"Completed Students: {stats.completed_students}",
                f"Special Students: {stats.special_students}",
                f"Active Staff: {stats.active_staff}",
                f"Assignment Rate: {stats.assignment_rate}%",
                f"Completion Rate: {stats.completion_rate}%",
            ]
            for line in stat_lines:
                ws.cell(row=current_row, column=1, value=line)
                current_row += 1

            # Staff performance table
            current_row += 1
            headers = ['Staff Name', 'Assigned', 'Completed', 'Pending', 'Completion %', 'Feedback', 'Status']
            for col, header in enumerate(headers, 1):
                cell = ws.cell(row=current_row, column=col, value=header)
                cell.font = Font(bold=True, color="FFFFFF")
                cell.fill = header_fill
                cell.border = border
                cell.alignment = center_alignment
            current_row += 1

            for staff in report.staff_performance:
                rate = float(staff.completion_rate)
                if staff.assigned_count == 0:
                    status, status_color = "No students", "EEEEEE"
                elif rate >= 70:
                    status, status_color = "Good", "D9EAD3"
                elif rate >= 40:
                    status, status_color = "Fair", "FFF2CC"
                else:
                    status, status_color = "Low", "FFE6E6"

                row_data = [
                    staff.staff_name,
                    staff.assigned_count,
                    staff.completed_count,
                    staff.pending_count,
                    f"{staff.completion_rate}%",
                    staff.feedback_count,
                    status,
                ]
                for col, value in enumerate(row_data, 1):
                    cell = ws.cell(row=current_row, column=col, value=value)
                    cell.border = border
                    if col == 7:
                        cell.fill = PatternFill(start_color=status_color, end_color=status_color, fill_type="solid")
                current_row += 1

            # Breakdowns
            breakdown = report.student_breakdown
            for title, counts in (("By Category", breakdown.by_category),
                                  ("By Status", breakdown.by_status),
                                  ("By Staff", breakdown.by_staff)):
                current_row += 1
                ws.cell(row=current_row, column=1, value=title).font = Font(bold=True)
                current_row += 1
                for key, count in counts.items():
                    ws.cell(row=current_row, column=1, value=key)
                    ws.cell(row=current_row, column=2, value=count)
                    current_row += 1

            # Recent feedback
            if feedback_rows:
                current_row += 1
                ws.cell(row=current_row, column=1, value="Recent Feedback").font = Font(bold=True, size=12)
                current_row += 1
                columns = ['Student Name', 'Staff Name', 'Status', 'Remarks', 'Date', 'Time']
                for col, header in enumerate(columns, 1):
                    cell = ws.cell(row=current_row, column=col, value=header)
                    cell.font = Font(bold=True)
                    cell.fill = PatternFill(start_color="D9EAD3", end_color="D9EAD3", fill_type="solid")
                current_row += 1
                for row in feedback_rows:
                    for col, header in enumerate(columns, 1):
                        ws.cell(row=current_row, column=col, value=row.get(header, ''))
                    current_row += 1

            for col_idx in range(1, 8):
                column_letter = get_column_letter(col_idx)
                ws.column_dimensions[column_letter].width = 18

            if filename is None:
                filename = f"outreach_report_{report.generated_at.strftime('%Y%m%d_%H%M%S')}.xlsx"
            filepath = os.path.join(self.export_folder, filename)
            wb.save(filepath)

            self.logger.info(f"Created report workbook: {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error creating report workbook: {str(e)}")
            return None
