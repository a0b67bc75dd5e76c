import os
import json
import logging
from datetime import datetime
from flask import Flask, request, jsonify, send_file, current_app
from werkzeug.utils import secure_filename

from config import Config
from database import Database
from data_manager import DataManager, default_remarks
from staff_directory import LocalStaffDirectory, UserDirectory
from performance import PerformanceAggregator
from assignment_engine import AssignmentEngine
from report_generator import ReportGenerator
from excel_handler import ExcelHandler
from models import Student, Staff, Feedback, StudentStatus, UserRole
from sample_students import default_users, load_demo_data


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config['LOG_LEVEL'])

    # send_file resolves relative paths against the app root, not the cwd
    for key in ('UPLOAD_FOLDER', 'EXPORT_FOLDER'):
        app.config[key] = os.path.abspath(app.config[key])
        os.makedirs(app.config[key], exist_ok=True)

    database = Database(app.config['DATABASE'])
    data_manager = DataManager(database)

    if app.config['STAFF_SOURCE'] == 'local':
        directory = LocalStaffDirectory(data_manager)
    else:
        directory = UserDirectory(database)
        if not directory.users and app.config['SEED_SAMPLE_DATA']:
            directory.users = default_users()
            directory.save_users()

    aggregator = PerformanceAggregator(data_manager, directory, app.config['TOP_PERFORMER_LIMIT'])
    app.extensions['outreach'] = {
        'data_manager': data_manager,
        'directory': directory,
        'aggregator': aggregator,
        'engine': AssignmentEngine(data_manager, directory, aggregator, app.config['SPECIAL_TARGET_LIMIT']),
        'reports': ReportGenerator(data_manager, directory, aggregator, app.config['RECENT_FEEDBACK_LIMIT']),
        'excel_handler': ExcelHandler(app.config['EXPORT_FOLDER']),
    }

    register_routes(app)
    return app


def service(name):
    return current_app.extensions['outreach'][name]


def user_directory():
    directory = service('directory')
    return directory if isinstance(directory, UserDirectory) else None


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in current_app.config['ALLOWED_EXTENSIONS']


def message(text, category='success', status=200, **extra):
    return jsonify(message=text, category=category, **extra), status


def int_arg(name, default=None):
    value = request.values.get(name, '').strip()
    if not value:
        return default
    return int(value)


def bool_arg(name, default=None):
    value = request.values.get(name, '').strip().lower()
    if not value:
        return default
    return value in ('1', 'true', 'yes', 'on')


def today_stamp():
    return datetime.now().strftime('%Y-%m-%d')


def send_export(filepath, filename):
    if filepath and os.path.exists(filepath):
        return send_file(filepath, as_attachment=True, download_name=filename)
    return message('Error generating export file', 'error', 500)


def register_routes(app):

    @app.route('/')
    def index():
        data_manager = service('data_manager')
        return jsonify({
            'students': len(data_manager.students),
            'staff': len(service('directory').all_staff()),
            'feedback': len(data_manager.feedback),
            'statistics': service('aggregator').get_statistics().to_dict(),
        })

    @app.route('/statistics')
    def statistics():
        return jsonify(service('aggregator').get_statistics().to_dict())

    @app.route('/staff')
    def staff():
        return jsonify([m.to_dict() for m in service('directory').all_staff()])

    @app.route('/staff', methods=['POST'])
    def add_staff():
        if user_directory() is not None:
            return message('Staff come from user accounts. Add a staff user instead.', 'error', 400)
        name = request.values.get('name', '').strip()
        if not name:
            return message('Staff name is required', 'error', 400)
        member = service('data_manager').add_staff(name, bool_arg('is_active', True))
        return message(f'Staff member {member.name} added', staff=member.to_dict())

    @app.route('/users')
    def users():
        directory = user_directory()
        if directory is None:
            return message('User accounts are not enabled', 'error', 400)
        return jsonify([u.to_dict() for u in directory.get_all_users()])

    @app.route('/users', methods=['POST'])
    def add_user():
        directory = user_directory()
        if directory is None:
            return message('User accounts are not enabled', 'error', 400)

        name = request.values.get('name', '').strip()
        email = request.values.get('email', '').strip()
        role = request.values.get('role', '').strip() or UserRole.STAFF
        if not name or not email:
            return message('Name and email are required', 'error', 400)

        try:
            user = directory.add_user(name, email, role)
        except ValueError:
            return message(f'Unknown role: {role}', 'error', 400)
        if user is None:
            return message('A user with this email already exists', 'error', 409)
        return message(f'User {user.name} added', user=user.to_dict())

    @app.route('/users/<int:user_id>', methods=['POST'])
    def update_user(user_id):
        directory = user_directory()
        if directory is None:
            return message('User accounts are not enabled', 'error', 400)
        if directory.get_user(user_id) is None:
            return message('User not found', 'error', 404)

        updates = {}
        for field in ('name', 'email', 'role'):
            value = request.values.get(field, '').strip()
            if value:
                updates[field] = value
        is_active = bool_arg('is_active')
        if is_active is not None:
            updates['is_active'] = is_active

        try:
            updated = directory.update_user(user_id, updates)
        except ValueError:
            return message(f"Unknown role: {updates.get('role')}", 'error', 400)
        if not updated:
            return message('A user with this email already exists', 'error', 409)
        return message('User updated successfully', user=directory.get_user(user_id).to_dict())

    @app.route('/users/<int:user_id>/deactivate', methods=['POST'])
    def deactivate_user(user_id):
        directory = user_directory()
        if directory is None:
            return message('User accounts are not enabled', 'error', 400)
        if not directory.deactivate_user(user_id):
            return message('User not found', 'error', 404)
        return message('User deactivated', 'warning')

    @app.route('/get_student_data')
    def get_student_data():
        try:
            students = service('data_manager').search_students(
                query=request.args.get('q'),
                category=request.args.get('category'),
                status=request.args.get('status'),
                staff_id=int_arg('staff_id'),
                is_special=bool_arg('is_special'),
            )
        except ValueError:
            return message('Invalid staff id', 'error', 400)
        return jsonify([s.to_dict() for s in students])

    @app.route('/upload_students', methods=['POST'])
    def upload_students():
        try:
            if 'file' not in request.files:
                return message('No file selected', 'error', 400)

            file = request.files['file']
            if file.filename == '':
                return message('No file selected', 'error', 400)

            if not allowed_file(file.filename):
                return message('Please upload a valid CSV or Excel file.', 'error', 400)

            filename = secure_filename(file.filename)
            filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
            file.save(filepath)

            students = service('excel_handler').read_student_data(filepath)
            if students is None:
                return message('Error processing file. Please check the format.', 'error', 400)
            if not students:
                return message('No valid student data found. Please check your file format.', 'error', 400)

            added = service('data_manager').add_students(students)
            return message(f'{added} students uploaded successfully!', added=added)

        except Exception as e:
            logging.error(f"Error uploading file: {str(e)}")
            return message(f'Error uploading file: {str(e)}', 'error', 500)

    @app.route('/update_student/<int:student_id>', methods=['POST'])
    def update_student(student_id):
        try:
            updates = {}
            for field in ('name', 'phone', 'category', 'status'):
                value = request.values.get(field, '').strip()
                if value:
                    updates[field] = value
            rank = int_arg('rank')
            if rank is not None:
                updates['rank'] = rank

            if 'name' in request.values and not updates.get('name'):
                return message('Name and phone are required', 'error', 400)
            if 'phone' in request.values and not updates.get('phone'):
                return message('Name and phone are required', 'error', 400)

            data_manager = service('data_manager')
            if data_manager.get_student(student_id) is None:
                return message('Student not found', 'error', 404)
            if not data_manager.update_student(student_id, updates):
                return message('Invalid student details', 'error', 400)
            return message('Student updated successfully')

        except ValueError:
            return message('Invalid number format for rank', 'error', 400)
        except Exception as e:
            logging.error(f"Error updating student: {str(e)}")
            return message('Error updating student', 'error', 500)

    @app.route('/delete_student/<int:student_id>', methods=['POST'])
    def delete_student(student_id):
        if service('data_manager').delete_student(student_id):
            return message('Student deleted successfully!')
        return message('Student not found', 'error', 404)

    @app.route('/mark_special/<int:student_id>', methods=['POST'])
    def mark_special(student_id):
        is_special = service('data_manager').toggle_special(student_id)
        if is_special is None:
            return message('Student not found', 'error', 404)
        text = 'Student marked as special' if is_special else 'Special status removed from student'
        return message(text, is_special=is_special)

    @app.route('/assign_students', methods=['POST'])
    def assign_students():
        try:
            engine = service('engine')
            payload = request.get_json(silent=True) or {}
            assignment_type = payload.get('assignment_type') or request.values.get('assignment_type', 'auto')

            if assignment_type == 'auto':
                count = engine.auto_assign_students()
                if count == 0:
                    return message('No unassigned students or active staff available.', 'info', assigned=0)
                return message(f'{count} students assigned automatically to staff.', assigned=count)

            if assignment_type == 'special':
                result = engine.assign_special_students()
                return message(result.message, result.category, assigned=result.count)

            if assignment_type == 'manual':
                assignments = {
                    int(student_id): int(staff_id)
                    for student_id, staff_id in (payload.get('assignments') or {}).items()
                    if staff_id not in (None, '')
                }
                count = engine.apply_manual_assignments(assignments)
                return message(f'{count} students assigned manually.', assigned=count)

            return message(f'Unknown assignment type: {assignment_type}', 'error', 400)

        except ValueError:
            return message('Invalid student or staff id', 'error', 400)
        except Exception as e:
            logging.error(f"Error assigning students: {str(e)}")
            return message('Error assigning students', 'error', 500)

    @app.route('/assign_special_to_staff/<int:staff_id>', methods=['POST'])
    def assign_special_to_staff(staff_id):
        directory = service('directory')
        if directory.find_staff(staff_id) is None:
            return message('Staff member not found', 'error', 404)
        count = service('engine').assign_special_to_staff(staff_id)
        name = directory.staff_name(staff_id, 'selected staff')
        return message(f'{count} special students assigned to {name}.', assigned=count)

    @app.route('/top_staff')
    def top_staff():
        return jsonify([r.to_dict() for r in service('aggregator').get_top_performing_staff()])

    @app.route('/submit_feedback', methods=['POST'])
    def submit_feedback():
        try:
            student_id = int_arg('student_id')
            staff_id = int_arg('staff_id')
        except ValueError:
            return message('Invalid student or staff id', 'error', 400)

        status = request.values.get('status', '').strip()
        remarks = request.values.get('remarks', '').strip()

        if not student_id or not staff_id or not status:
            return message('Please select a student and status', 'error', 400)
        if not remarks:
            return message('Please provide remarks', 'error', 400)
        if not StudentStatus.is_valid(status):
            return message(f'Unknown status: {status}', 'error', 400)

        feedback_id = service('data_manager').add_feedback(student_id, staff_id, status, remarks)
        return message('Feedback submitted successfully!', feedback_id=feedback_id)

    @app.route('/quick_update_status/<int:student_id>', methods=['POST'])
    def quick_update_status(student_id):
        try:
            staff_id = int_arg('staff_id')
        except ValueError:
            return message('Invalid staff id', 'error', 400)
        status = request.values.get('status', '').strip()

        data_manager = service('data_manager')
        if data_manager.get_student(student_id) is None:
            return message('Student not found', 'error', 404)
        if staff_id is None or not StudentStatus.is_valid(status):
            return message('Please provide a staff id and a valid status', 'error', 400)

        feedback_id = data_manager.add_feedback(student_id, staff_id, status, default_remarks(status))
        return message(f'Student status updated to {StudentStatus.parse(status).value}', feedback_id=feedback_id)

    @app.route('/bulk_update_status', methods=['POST'])
    def bulk_update_status():
        try:
            staff_id = int_arg('staff_id')
        except ValueError:
            return message('Invalid staff id', 'error', 400)
        status = request.values.get('status', '').strip()
        if staff_id is None or not StudentStatus.is_valid(status):
            return message('Please provide a staff id and a valid status', 'error', 400)

        data_manager = service('data_manager')
        pending = [s for s in data_manager.get_students_by_staff(staff_id) if s.status == StudentStatus.PENDING]
        if not pending:
            return message('No pending students to update', 'info', updated=0)

        for student in pending:
            data_manager.add_feedback(student.id, staff_id, status, default_remarks(status))
        return message(f'{len(pending)} students updated successfully!', updated=len(pending))

    @app.route('/report')
    def report():
        return jsonify(service('reports').generate_report().to_dict())

    @app.route('/staff_report/<int:staff_id>')
    def staff_report(staff_id):
        staff_report = service('reports').generate_staff_report(staff_id)
        if staff_report is None:
            return message('Staff member not found', 'error', 404)
        return jsonify(staff_report.to_dict())

    @app.route('/export_students')
    def export_students():
        try:
            rows = service('reports').student_export_rows()
            if not rows:
                return message('No student data to export', 'warning', 404)
            filename = 'students_export.csv'
            return send_export(service('excel_handler').export_to_csv(rows, filename), filename)
        except Exception as e:
            logging.error(f"Error exporting students: {str(e)}")
            return message('Error exporting students', 'error', 500)

    @app.route('/export_report')
    def export_report():
        try:
            reports = service('reports')
            rows = reports.report_export_rows(reports.generate_report(),
                                              request.args.get('generated_by', 'Admin'))
            filename = f'outreach_report_{today_stamp()}.csv'
            return send_export(service('excel_handler').export_to_csv(rows, filename), filename)
        except Exception as e:
            logging.error(f"Error exporting report: {str(e)}")
            return message('Error exporting report', 'error', 500)

    @app.route('/export_report_workbook')
    def export_report_workbook():
        try:
            reports = service('reports')
            report = reports.generate_report()
            feedback_rows = [
                row for row in reports.report_export_rows(report)
                if row['Report Type'] == 'Recent Feedback'
            ]
            filepath = service('excel_handler').export_report_workbook(report, feedback_rows)
            return send_export(filepath, os.path.basename(filepath) if filepath else '')
        except Exception as e:
            logging.error(f"Error exporting report workbook: {str(e)}")
            return message('Error exporting report workbook', 'error', 500)

    @app.route('/export_my_students/<int:staff_id>')
    def export_my_students(staff_id):
        directory = service('directory')
        if directory.find_staff(staff_id) is None:
            return message('Staff member not found', 'error', 404)

        rows = service('reports').staff_student_export_rows(
            staff_id,
            include_pending=bool_arg('include_pending', True),
            include_feedback=bool_arg('include_feedback', True),
        )
        if not rows:
            return message('No students to export', 'error', 404)

        name = secure_filename(directory.staff_name(staff_id)) or 'staff'
        filename = f'my_students_{name}_{today_stamp()}.csv'
        return send_export(service('excel_handler').export_to_csv(rows, filename), filename)

    @app.route('/export_my_feedback/<int:staff_id>')
    def export_my_feedback(staff_id):
        directory = service('directory')
        if directory.find_staff(staff_id) is None:
            return message('Staff member not found', 'error', 404)

        rows = service('reports').staff_feedback_export_rows(staff_id)
        if not rows:
            return message('No feedback to export', 'error', 404)

        name = secure_filename(directory.staff_name(staff_id)) or 'staff'
        filename = f'feedback_{name}_{today_stamp()}.csv'
        return send_export(service('excel_handler').export_to_csv(rows, filename), filename)

    @app.route('/backup')
    def backup():
        payload = service('data_manager').snapshot()
        payload['exported_at'] = datetime.now().isoformat()
        payload['version'] = '1.0.0'
        response = jsonify(payload)
        response.headers['Content-Disposition'] = f'attachment; filename=outreach_backup_{today_stamp()}.json'
        return response

    @app.route('/restore', methods=['POST'])
    def restore():
        try:
            if 'file' in request.files:
                data = json.load(request.files['file'])
            else:
                data = request.get_json(silent=True)

            if not data or not all(key in data for key in ('students', 'staff', 'feedback')):
                return message('Invalid data format', 'error', 400)

            students = [Student.from_dict(s) for s in data['students']]
            staff = [Staff.from_dict(m) for m in data['staff']]
            feedback = [Feedback.from_dict(f) for f in data['feedback']]
            service('data_manager').replace_all(students, staff, feedback)
        except (ValueError, KeyError, TypeError) as e:
            logging.error(f"Error reading backup: {str(e)}")
            return message('Invalid data format', 'error', 400)

        return message('Data imported successfully!', students=len(students))

    @app.route('/load_sample_data', methods=['POST'])
    def load_sample_data():
        count = load_demo_data(service('data_manager'))
        return message(f'Sample data loaded: {count} students', students=count)

    @app.route('/clear_data', methods=['POST'])
    def clear_data():
        service('data_manager').clear_all_data()
        return message('All data has been reset', 'warning')


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=5000, debug=True)
