import os


_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))


class BaseConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "sqlite:///handbook.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORAGE_RUN_LOGS_PATH = os.environ.get(
        "STORAGE_RUN_LOGS_PATH",
        os.path.join(_ROOT, "storage", "run_logs"),
    )
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "console")
    ORPHAN_MAX_AGE_DAYS = int(os.environ.get("ORPHAN_MAX_AGE_DAYS", "30"))
    CONTEXT_IMAGE_LIMIT = int(os.environ.get("CONTEXT_IMAGE_LIMIT", "50"))
    RECENT_IMAGE_LIMIT = int(os.environ.get("RECENT_IMAGE_LIMIT", "10"))
    SUGGESTION_LIMIT = int(os.environ.get("SUGGESTION_LIMIT", "5"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STORAGE_RUN_LOGS_PATH = None
    LOG_LEVEL = "WARNING"
