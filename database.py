import sqlite3
import logging
from contextlib import closing
from typing import List, Tuple

from models import Student, Staff, Feedback, User


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS students (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        phone TEXT NOT NULL,
        rank INTEGER NOT NULL DEFAULT 0,
        category TEXT NOT NULL DEFAULT '',
        assigned_staff INTEGER,
        status TEXT NOT NULL DEFAULT 'pending',
        is_special INTEGER NOT NULL DEFAULT 0,
        upload_date TEXT NOT NULL,
        position INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS staff (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        position INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS feedback (
        id INTEGER PRIMARY KEY,
        student_id INTEGER NOT NULL,
        staff_id INTEGER NOT NULL,
        status TEXT NOT NULL,
        remarks TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        position INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        role TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        position INTEGER NOT NULL
    )
    """,
)


class Database:
    """
    SQLite-backed store for students, staff, feedback and users.

    Collections are saved whole: every save rewrites the tables inside a single
    transaction, keeping insertion order in a ``position`` column. Failures are
    logged and never raised; a failed load yields empty collections.
    """

    def __init__(self, path: str):
        self.path = path
        self.logger = logging.getLogger(__name__)

    def connect(self) -> sqlite3.Connection:
        """Open a connection with the schema in place"""
        db = sqlite3.connect(self.path)
        db.row_factory = sqlite3.Row
        for statement in SCHEMA:
            db.execute(statement)
        return db

    def query_db(self, db: sqlite3.Connection, query: str, args=()) -> List[sqlite3.Row]:
        cur = db.execute(query, args)
        rv = cur.fetchall()
        cur.close()
        return rv

    def load(self) -> Tuple[List[Student], List[Staff], List[Feedback]]:
        try:
            with closing(self.connect()) as db:
                students = [
                    Student.from_dict(dict(row))
                    for row in self.query_db(db, "SELECT * FROM students ORDER BY position")
                ]
                staff = [
                    Staff.from_dict(dict(row))
                    for row in self.query_db(db, "SELECT * FROM staff ORDER BY position")
                ]
                feedback = [
                    Feedback.from_dict(dict(row))
                    for row in self.query_db(db, "SELECT * FROM feedback ORDER BY position")
                ]
            return students, staff, feedback
        except Exception as e:
            self.logger.error(f"Error loading data from {self.path}: {str(e)}")
            return [], [], []

    def save(self, students: List[Student], staff: List[Staff], feedback: List[Feedback]) -> bool:
        try:
            with closing(self.connect()) as db:
                with db:
                    db.execute("DELETE FROM students")
                    db.executemany(
                        """INSERT INTO students (id, name, phone, rank, category, assigned_staff,
                        status, is_special, upload_date, position)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        [
                            (s.id, s.name, s.phone, s.rank, s.category, s.assigned_staff,
                             s.status.value, int(s.is_special), s.upload_date.isoformat(), position)
                            for position, s in enumerate(students)
                        ]
                    )
                    db.execute("DELETE FROM staff")
                    db.executemany(
                        "INSERT INTO staff (id, name, is_active, position) VALUES (?, ?, ?, ?)",
                        [(m.id, m.name, int(m.is_active), position) for position, m in enumerate(staff)]
                    )
                    db.execute("DELETE FROM feedback")
                    db.executemany(
                        """INSERT INTO feedback (id, student_id, staff_id, status, remarks, timestamp, position)
                        VALUES (?, ?, ?, ?, ?, ?, ?)""",
                        [
                            (f.id, f.student_id, f.staff_id, f.status.value, f.remarks,
                             f.timestamp.isoformat(), position)
                            for position, f in enumerate(feedback)
                        ]
                    )
            return True
        except Exception as e:
            self.logger.error(f"Error saving data to {self.path}: {str(e)}")
            return False

    def load_users(self) -> List[User]:
        try:
            with closing(self.connect()) as db:
                return [
                    User.from_dict(dict(row))
                    for row in self.query_db(db, "SELECT * FROM users ORDER BY position")
                ]
        except Exception as e:
            self.logger.error(f"Error loading users from {self.path}: {str(e)}")
            return []

    def save_users(self, users: List[User]) -> bool:
        try:
            with closing(self.connect()) as db:
                with db:
                    db.execute("DELETE FROM users")
                    db.executemany(
                        """INSERT INTO users (id, name, email, role, is_active, created_at, position)
                        VALUES (?, ?, ?, ?, ?, ?, ?)""",
                        [
                            (u.id, u.name, u.email, u.role.value, int(u.is_active),
                             u.created_at.isoformat(), position)
                            for position, u in enumerate(users)
                        ]
                    )
            return True
        except Exception as e:
            self.logger.error(f"Error saving users to {self.path}: {str(e)}")
            return False
