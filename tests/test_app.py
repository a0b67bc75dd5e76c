import io
import json

from database import Database
from tests.helpers import add_roster

ROSTER = (
    'Name,Phone,Rank,Category\n'
    'Kiran Rao,9876500001,1500,OC\n'
    'Lata Devi,9876500002,2300,SC\n'
    'Broken Row,,10,OC\n'
    'Mohan Das,9876500004,3100,BC-A\n'
)


def upload(client, content=ROSTER, filename='roster.csv'):
    return client.post('/upload_students', data={'file': (io.BytesIO(content.encode('utf-8')), filename)},
                       content_type='multipart/form-data')


def outreach(app):
    return app.extensions['outreach']


def test_index_lists_seeded_staff(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.get_json()['students'] == 0

    staff = client.get('/staff').get_json()
    assert [m['name'] for m in staff] == ['John Smith', 'Sarah Johnson']


def test_upload_skips_incomplete_rows(client):
    response = upload(client)
    assert response.status_code == 200
    assert response.get_json()['added'] == 3

    students = client.get('/get_student_data').get_json()
    assert [s['name'] for s in students] == ['Kiran Rao', 'Lata Devi', 'Mohan Das']
    assert {s['status'] for s in students} == {'pending'}


def test_upload_rejects_bad_files(client):
    assert client.post('/upload_students', data={}).status_code == 400
    assert upload(client, filename='roster.txt').status_code == 400
    assert upload(client, content='Name,Phone\nA,1\n').status_code == 400


def test_search_filters(client):
    upload(client)
    assert [s['name'] for s in client.get('/get_student_data?category=SC').get_json()] == ['Lata Devi']
    assert [s['name'] for s in client.get('/get_student_data?q=mohan').get_json()] == ['Mohan Das']
    assert client.get('/get_student_data?staff_id=abc').status_code == 400


def test_auto_assignment_round_robin(app, client):
    upload(client)
    response = client.post('/assign_students', data={'assignment_type': 'auto'})
    assert response.get_json()['assigned'] == 3

    students = outreach(app)['data_manager'].students
    assert [s.assigned_staff for s in students] == [2, 3, 2]

    again = client.post('/assign_students', data={'assignment_type': 'auto'})
    assert again.get_json()['assigned'] == 0


def test_manual_assignment(app, client):
    upload(client)
    response = client.post('/assign_students', json={
        'assignment_type': 'manual',
        'assignments': {'1': 3, '2': 99, '3': ''},
    })
    assert response.get_json()['assigned'] == 1

    data_manager = outreach(app)['data_manager']
    assert data_manager.get_student(1).assigned_staff == 3
    assert data_manager.get_student(2).assigned_staff is None


def test_unknown_assignment_type(client):
    response = client.post('/assign_students', data={'assignment_type': 'random'})
    assert response.status_code == 400


def test_special_assignment_flow(app, client):
    upload(client)
    client.post('/assign_students', data={'assignment_type': 'auto'})
    client.post('/quick_update_status/1', data={'staff_id': 2, 'status': 'contacted'})

    add_roster(outreach(app)['data_manager'], 1)
    special_id = outreach(app)['data_manager'].students[-1].id
    assert client.post(f'/mark_special/{special_id}').get_json()['is_special'] is True

    response = client.post('/assign_students', data={'assignment_type': 'special'})
    body = response.get_json()
    assert body['assigned'] == 1
    assert 'John Smith' in body['message']

    top = client.get('/top_staff').get_json()
    assert [r['name'] for r in top] == ['John Smith', 'Sarah Johnson']


def test_special_assignment_with_nothing_to_do(client):
    body = client.post('/assign_students', data={'assignment_type': 'special'}).get_json()
    assert body['assigned'] == 0
    assert body['category'] == 'warning'


def test_assign_special_to_named_staff(app, client):
    upload(client)
    client.post('/mark_special/2')
    assert client.post('/assign_special_to_staff/42').status_code == 404

    body = client.post('/assign_special_to_staff/3').get_json()
    assert body['assigned'] == 1
    assert outreach(app)['data_manager'].get_student(2).assigned_staff == 3


def test_feedback_updates_status(app, client):
    upload(client)
    response = client.post('/submit_feedback', data={
        'student_id': 1, 'staff_id': 2, 'status': 'interested', 'remarks': 'Will visit campus',
    })
    assert response.status_code == 200
    assert outreach(app)['data_manager'].get_student(1).status.value == 'interested'

    assert client.post('/submit_feedback', data={
        'student_id': 1, 'staff_id': 2, 'status': 'interested', 'remarks': ' ',
    }).status_code == 400
    assert client.post('/submit_feedback', data={
        'student_id': 1, 'staff_id': 2, 'status': 'maybe', 'remarks': 'Hmm',
    }).status_code == 400


def test_bulk_update_only_touches_pending(app, client):
    upload(client)
    client.post('/assign_students', data={'assignment_type': 'auto'})
    client.post('/quick_update_status/1', data={'staff_id': 2, 'status': 'interested'})

    body = client.post('/bulk_update_status', data={'staff_id': 2, 'status': 'call-back'}).get_json()
    assert body['updated'] == 1

    data_manager = outreach(app)['data_manager']
    assert data_manager.get_student(1).status.value == 'interested'
    assert data_manager.get_student(3).status.value == 'call-back'
    assert data_manager.latest_feedback(3).remarks == 'Student requested to call back later'


def test_update_and_delete_student(app, client):
    upload(client)
    assert client.post('/update_student/1', data={'phone': '9000000000', 'rank': '77'}).status_code == 200
    student = outreach(app)['data_manager'].get_student(1)
    assert (student.phone, student.rank) == ('9000000000', 77)

    assert client.post('/update_student/1', data={'rank': 'seventy'}).status_code == 400
    assert client.post('/update_student/1', data={'status': 'lost'}).status_code == 400
    assert client.post('/update_student/99', data={'name': 'X'}).status_code == 404

    assert client.post('/delete_student/1').status_code == 200
    assert client.post('/delete_student/1').status_code == 404


def test_report_endpoints(client):
    upload(client)
    client.post('/assign_students', data={'assignment_type': 'auto'})

    report = client.get('/report').get_json()
    assert report['statistics']['total_students'] == 3
    assert report['statistics']['assignment_rate'] == 100.0
    assert [p['completion_rate'] for p in report['staff_performance']] == ['0.0', '0.0']

    staff_report = client.get('/staff_report/2').get_json()
    assert staff_report['total_assigned'] == 2
    assert client.get('/staff_report/1').status_code == 404


def test_exports(client):
    assert client.get('/export_students').status_code == 404

    upload(client)
    client.post('/assign_students', data={'assignment_type': 'auto'})
    client.post('/submit_feedback', data={
        'student_id': 1, 'staff_id': 2, 'status': 'contacted', 'remarks': 'Said "yes"',
    })

    students_csv = client.get('/export_students')
    assert students_csv.status_code == 200
    assert 'students_export.csv' in students_csv.headers['Content-Disposition']
    lines = students_csv.data.decode('utf-8').split('\n')
    assert lines[0].startswith('Student Name,Phone,EAMCET Rank')
    assert len(lines) == 4

    report_lines = client.get('/export_report').data.decode('utf-8').split('\n')
    assert report_lines[0] == (
        'Report Type,Generated Date,Generated By,Total Students,Assigned Students,'
        'Pending Students,Completed Students,Active Staff,Completion Rate,Assignment Rate'
    )
    assert report_lines[1].startswith('"Student Outreach Report"')
    # Columns come from the statistics row, so feedback rows only keep their type
    assert report_lines[-1] == '"Recent Feedback"' + ',""' * 9

    feedback_csv = client.get('/export_my_feedback/2').data.decode('utf-8')
    assert 'Remarks' in feedback_csv.split('\n')[0]
    assert '"Said "yes""' in feedback_csv

    assert client.get('/export_report_workbook').status_code == 200
    assert client.get('/export_my_students/2').status_code == 200
    assert client.get('/export_my_feedback/2').status_code == 200
    assert client.get('/export_my_feedback/3').status_code == 404
    assert client.get('/export_my_students/9').status_code == 404


def test_backup_and_restore(app, client):
    upload(client)
    client.post('/submit_feedback', data={
        'student_id': 2, 'staff_id': 3, 'status': 'not-reachable', 'remarks': 'No answer',
    })
    backup = client.get('/backup')
    assert 'attachment' in backup.headers['Content-Disposition']
    payload = backup.get_json()

    client.post('/clear_data')
    assert client.get('/').get_json()['students'] == 0

    restored = client.post('/restore', data={
        'file': (io.BytesIO(json.dumps(payload).encode('utf-8')), 'backup.json'),
    }, content_type='multipart/form-data')
    assert restored.status_code == 200
    data_manager = outreach(app)['data_manager']
    assert len(data_manager.students) == 3
    assert data_manager.get_student(2).status.value == 'not-reachable'

    assert client.post('/restore', json={'students': []}).status_code == 400


def test_sample_data(client):
    body = client.post('/load_sample_data').get_json()
    assert body['students'] == 5

    report = client.get('/report').get_json()
    assert report['student_breakdown']['by_staff'] == {'John Smith': 2, 'Sarah Johnson': 2}


def test_local_staff_source(tmp_path):
    from app import create_app

    app = create_app({
        'TESTING': True,
        'DATABASE': str(tmp_path / 'local.db'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'EXPORT_FOLDER': str(tmp_path / 'exports'),
        'STAFF_SOURCE': 'local',
        'LOG_LEVEL': 'WARNING',
    })
    client = app.test_client()
    assert client.get('/staff').get_json() == []
    assert client.get('/users').status_code == 400

    added = client.post('/staff', data={'name': 'Asha'})
    assert added.get_json()['staff'] == {'id': 1, 'name': 'Asha', 'is_active': True}
    assert client.post('/staff', data={'name': ' '}).status_code == 400
    assert [m['name'] for m in client.get('/staff').get_json()] == ['Asha']


def test_restore_rejects_repeated_ids(app, client):
    upload(client)
    payload = client.get('/backup').get_json()
    payload['students'][1]['id'] = payload['students'][0]['id']

    response = client.post('/restore', json=payload)

    assert response.status_code == 400
    data_manager = outreach(app)['data_manager']
    assert [s.id for s in data_manager.students] == [1, 2, 3]

    client.post('/delete_student/1')
    assert [s.id for s in Database(app.config['DATABASE']).load()[0]] == [2, 3]


def test_user_accounts(client):
    added = client.post('/users', data={'name': 'Ravi Teja', 'email': 'ravi@svgroup.edu'})
    assert added.status_code == 200
    assert added.get_json()['user']['id'] == 4
    assert [m['name'] for m in client.get('/staff').get_json()] == ['John Smith', 'Sarah Johnson', 'Ravi Teja']

    assert client.post('/users', data={'name': 'Ravi', 'email': 'RAVI@svgroup.edu'}).status_code == 409
    assert client.post('/users', data={'name': 'Ravi', 'email': 'r2@svgroup.edu', 'role': 'owner'}).status_code == 400
    assert client.post('/users', data={'name': 'No Email'}).status_code == 400

    renamed = client.post('/users/4', data={'name': 'Ravi T'})
    assert renamed.get_json()['user']['name'] == 'Ravi T'
    assert client.post('/users/4', data={'email': 'john@svgroup.edu'}).status_code == 409
    assert client.post('/users/40', data={'name': 'Ghost'}).status_code == 404

    assert client.post('/users/3/deactivate').status_code == 200
    assert client.post('/users/40/deactivate').status_code == 404
    assert [u['name'] for u in client.get('/users').get_json()] == ['Admin User', 'John Smith', 'Ravi T']

    upload(client)
    client.post('/assign_students', data={'assignment_type': 'auto'})
    report = client.get('/report').get_json()
    assert report['student_breakdown']['by_staff'] == {'John Smith': 2, 'Ravi T': 1}


def test_adding_local_staff_is_refused_with_user_accounts(client):
    response = client.post('/staff', data={'name': 'Asha'})
    assert response.status_code == 400
