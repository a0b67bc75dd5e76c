"""
Shared fixtures: a throwaway SQLite file per test, the services wired together
over a local staff list, and a Flask test client over the user directory.
"""
import pytest

from app import create_app
from database import Database
from data_manager import DataManager
from staff_directory import LocalStaffDirectory
from performance import PerformanceAggregator
from assignment_engine import AssignmentEngine
from report_generator import ReportGenerator


@pytest.fixture
def database(tmp_path):
    return Database(str(tmp_path / 'outreach.db'))


@pytest.fixture
def data_manager(database):
    return DataManager(database)


@pytest.fixture
def directory(data_manager):
    return LocalStaffDirectory(data_manager)


@pytest.fixture
def aggregator(data_manager, directory):
    return PerformanceAggregator(data_manager, directory)


@pytest.fixture
def engine(data_manager, directory, aggregator):
    return AssignmentEngine(data_manager, directory, aggregator)


@pytest.fixture
def reports(data_manager, directory, aggregator):
    return ReportGenerator(data_manager, directory, aggregator)


@pytest.fixture
def staff_members(data_manager):
    """Three active staff in listed order: Asha, Bala, Chitra."""
    return [data_manager.add_staff(name) for name in ('Asha', 'Bala', 'Chitra')]


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATABASE': str(tmp_path / 'app.db'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'EXPORT_FOLDER': str(tmp_path / 'exports'),
        'STAFF_SOURCE': 'users',
        'SEED_SAMPLE_DATA': True,
        'LOG_LEVEL': 'WARNING',
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
