#!/usr/bin/env python3
"""
Demo data for the outreach tracker: default accounts, a handful of students
with feedback, and a sample roster file for testing uploads.
"""
import pandas as pd
from datetime import date, datetime, timedelta, timezone

from models import Student, Feedback, User, UserRole, StudentStatus


def default_users():
    """Accounts created on first start: one admin and two staff members."""
    now = datetime.now(timezone.utc)
    return [
        User(id=1, name='Admin User', email='admin@svgroup.edu', role=UserRole.ADMIN, created_at=now),
        User(id=2, name='John Smith', email='john@svgroup.edu', role=UserRole.STAFF, created_at=now),
        User(id=3, name='Sarah Johnson', email='sarah@svgroup.edu', role=UserRole.STAFF, created_at=now),
    ]


def demo_students():
    today = date.today()
    return [
        Student(id=1, name='Aarav Sharma', phone='9876543210', rank=1250, category='OC',
                assigned_staff=2, status=StudentStatus.CONTACTED, upload_date=today),
        Student(id=2, name='Diya Patel', phone='9876543211', rank=2300, category='BC-A',
                assigned_staff=2, status=StudentStatus.INTERESTED, upload_date=today),
        Student(id=3, name='Rohan Reddy', phone='9876543212', rank=850, category='OC',
                assigned_staff=3, status=StudentStatus.PENDING, is_special=True, upload_date=today),
        Student(id=4, name='Priya Kumar', phone='9876543213', rank=3100, category='SC',
                assigned_staff=3, status=StudentStatus.NOT_INTERESTED, upload_date=today),
        Student(id=5, name='Vikram Singh', phone='9876543214', rank=4500, category='OC',
                upload_date=today),
    ]


def demo_feedback():
    now = datetime.now(timezone.utc)
    return [
        Feedback(id=1, student_id=1, staff_id=2, status=StudentStatus.CONTACTED,
                 remarks='Student contacted successfully. Showed interest in computer science programs.',
                 timestamp=now - timedelta(days=2)),
        Feedback(id=2, student_id=2, staff_id=2, status=StudentStatus.INTERESTED,
                 remarks='Very interested in engineering programs. Wants to visit campus.',
                 timestamp=now - timedelta(days=1)),
        Feedback(id=3, student_id=3, staff_id=3, status=StudentStatus.PENDING,
                 remarks='Unable to reach student. Will try again tomorrow.',
                 timestamp=now - timedelta(days=3)),
        Feedback(id=4, student_id=4, staff_id=3, status=StudentStatus.NOT_INTERESTED,
                 remarks='Student not interested in our programs. Looking for different field.',
                 timestamp=now - timedelta(days=4)),
    ]


def load_demo_data(data_manager):
    """Replace the data manager's contents with the demo students and feedback."""
    data_manager.replace_all(demo_students(), data_manager.staff, demo_feedback())
    return len(data_manager.students)


def create_sample_student_data(output_file='sample_students.xlsx'):
    """Create a sample roster file in the upload format."""
    sample_data = [
        {'Name': s.name, 'Phone': s.phone, 'EAMCET Rank': s.rank, 'Category': s.category}
        for s in demo_students()
    ]

    df = pd.DataFrame(sample_data)
    df.to_excel(output_file, index=False, engine='openpyxl')

    print(f"Sample student data created in '{output_file}'")
    print(f"Total students: {len(df)}")
    print(f"Category distribution: {df['Category'].value_counts().to_dict()}")

    return output_file


if __name__ == "__main__":
    create_sample_student_data()
