from collections import Counter

from assignment_engine import AssignmentEngine
from models import StudentStatus
from tests.helpers import add_roster


def test_round_robin_follows_staff_order(data_manager, engine, staff_members):
    ids = add_roster(data_manager, 7)

    assert engine.auto_assign_students() == 7

    expected = [staff_members[i % 3].id for i in range(7)]
    assert [data_manager.get_student(sid).assigned_staff for sid in ids] == expected
    counts = Counter(expected).values()
    assert max(counts) - min(counts) <= 1


def test_only_unassigned_students_are_distributed(data_manager, engine, staff_members):
    ids = add_roster(data_manager, 4)
    data_manager.assign_students({ids[0]: staff_members[2].id})

    assert engine.auto_assign_students() == 3
    assert data_manager.get_student(ids[0]).assigned_staff == staff_members[2].id
    assert [data_manager.get_student(sid).assigned_staff for sid in ids[1:]] == [m.id for m in staff_members]


def test_inactive_staff_receive_nothing(data_manager, engine):
    active = data_manager.add_staff('Active')
    data_manager.add_staff('Away', is_active=False)
    ids = add_roster(data_manager, 3)

    engine.auto_assign_students()
    assert {data_manager.get_student(sid).assigned_staff for sid in ids} == {active.id}


def test_auto_assign_without_staff_is_a_no_op(database, data_manager, engine):
    add_roster(data_manager, 3)
    before = list(data_manager.students)

    assert engine.auto_assign_students() == 0
    assert data_manager.students == before


def test_auto_assign_without_unassigned_students_is_a_no_op(data_manager, engine, staff_members):
    assert engine.auto_assign_students() == 0
    ids = add_roster(data_manager, 2)
    engine.auto_assign_students()
    before = list(data_manager.students)

    assert engine.auto_assign_students() == 0
    assert data_manager.students == before
    assert len(ids) == 2


def test_manual_assignment_requires_both_ids(data_manager, engine, staff_members):
    [student_id] = add_roster(data_manager, 1)

    assert not engine.assign_student_to_staff(student_id, 999)
    assert not engine.assign_student_to_staff(999, staff_members[0].id)
    assert data_manager.get_student(student_id).assigned_staff is None


def test_manual_assignment_overwrites_previous_staff(data_manager, engine, staff_members):
    [student_id] = add_roster(data_manager, 1)

    assert engine.assign_student_to_staff(student_id, staff_members[0].id)
    assert engine.assign_student_to_staff(student_id, staff_members[1].id)
    assert data_manager.get_student(student_id).assigned_staff == staff_members[1].id


def test_inactive_staff_can_be_chosen_manually(data_manager, engine):
    away = data_manager.add_staff('Away', is_active=False)
    [student_id] = add_roster(data_manager, 1)
    assert engine.assign_student_to_staff(student_id, away.id)


def test_apply_manual_assignments_counts_successes(data_manager, engine, staff_members):
    ids = add_roster(data_manager, 3)
    count = engine.apply_manual_assignments({ids[0]: staff_members[0].id, ids[1]: 404, 500: staff_members[1].id})
    assert count == 1


def rank_staff(data_manager, staff, completed_by_name):
    """Give each staff member four students, `completed_by_name[name]` of them contacted."""
    for member in staff:
        ids = add_roster(data_manager, 4)
        data_manager.assign_students({sid: member.id for sid in ids})
        for sid in ids[:completed_by_name[member.name]]:
            data_manager.update_student(sid, {'status': StudentStatus.CONTACTED})


def test_special_students_go_to_the_top_two_only(data_manager, engine, staff_members):
    rank_staff(data_manager, staff_members, {'Asha': 2, 'Bala': 4, 'Chitra': 3})
    special = add_roster(data_manager, 5, category='SC')
    for sid in special:
        data_manager.toggle_special(sid)

    result = engine.assign_special_students()

    bala, chitra = staff_members[1].id, staff_members[2].id
    assert result.count == 5
    assert [data_manager.get_student(sid).assigned_staff for sid in special] == [bala, chitra, bala, chitra, bala]


def test_special_assignment_ignores_regular_and_assigned_students(data_manager, engine, staff_members):
    rank_staff(data_manager, staff_members, {'Asha': 4, 'Bala': 1, 'Chitra': 1})
    regular, special, taken = add_roster(data_manager, 3)
    data_manager.toggle_special(special)
    data_manager.toggle_special(taken)
    data_manager.assign_students({taken: staff_members[2].id})

    assert engine.assign_special_students().count == 1
    assert data_manager.get_student(special).assigned_staff == staff_members[0].id
    assert data_manager.get_student(regular).assigned_staff is None
    assert data_manager.get_student(taken).assigned_staff == staff_members[2].id


def test_special_assignment_without_candidates(data_manager, engine, staff_members):
    rank_staff(data_manager, staff_members, {'Asha': 1, 'Bala': 1, 'Chitra': 1})
    result = engine.assign_special_students()
    assert result.count == 0
    assert 'No unassigned special students' in result.message


def test_special_assignment_without_ranked_staff(data_manager, engine, staff_members):
    [student_id] = add_roster(data_manager, 1)
    data_manager.toggle_special(student_id)

    result = engine.assign_special_students()
    assert result.count == 0
    assert result.category == 'warning'
    assert data_manager.get_student(student_id).assigned_staff is None


def test_special_target_limit_is_configurable(data_manager, directory, aggregator, staff_members):
    engine = AssignmentEngine(data_manager, directory, aggregator, special_target_limit=1)
    rank_staff(data_manager, staff_members, {'Asha': 1, 'Bala': 3, 'Chitra': 2})
    special = add_roster(data_manager, 3)
    for sid in special:
        data_manager.toggle_special(sid)

    engine.assign_special_students()
    assert {data_manager.get_student(sid).assigned_staff for sid in special} == {staff_members[1].id}


def test_assign_special_to_one_staff_member(data_manager, engine, staff_members):
    special = add_roster(data_manager, 2)
    for sid in special:
        data_manager.toggle_special(sid)

    assert engine.assign_special_to_staff(999) == 0
    assert engine.assign_special_to_staff(staff_members[2].id) == 2
    assert {data_manager.get_student(sid).assigned_staff for sid in special} == {staff_members[2].id}
