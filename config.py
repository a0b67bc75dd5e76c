import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.environ.get("SESSION_SECRET", "dev-secret-key-change-in-production")

    DATABASE = os.environ.get("OUTREACH_DATABASE", "outreach.db")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    EXPORT_FOLDER = os.environ.get("EXPORT_FOLDER", "exports")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size
    ALLOWED_EXTENSIONS = {'csv', 'xlsx', 'xls'}

    # 'users' reads staff from user accounts, 'local' from the roster's staff table
    STAFF_SOURCE = os.environ.get("STAFF_SOURCE", "users")

    TOP_PERFORMER_LIMIT = int(os.environ.get("TOP_PERFORMER_LIMIT", 3))
    SPECIAL_TARGET_LIMIT = int(os.environ.get("SPECIAL_TARGET_LIMIT", 2))
    RECENT_FEEDBACK_LIMIT = int(os.environ.get("RECENT_FEEDBACK_LIMIT", 10))

    SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", "1")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
