import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")

    # Database: DATABASE_URL in production (PostgreSQL), SQLite for local dev
    _db_url = os.environ.get("DATABASE_URL", f"sqlite:///{os.path.join(basedir, 'instance', 'esg_platform.db')}")
    # Some hosts hand out postgres:// but SQLAlchemy requires postgresql://
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
    } if "DATABASE_URL" in os.environ else {}
    UPLOAD_FOLDER = os.path.join(basedir, "instance", "uploads")
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50 MB per request
    ALLOWED_EXTENSIONS = {"pdf", "doc", "docx", "xls", "xlsx", "csv", "png", "jpg", "jpeg", "txt"}

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = 3600
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "") == "1"
    PREFERRED_URL_SCHEME = "https" if SESSION_COOKIE_SECURE else "http"

    # AI text generation (report sections)
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
    AI_MODEL = os.environ.get("AI_MODEL", "claude-haiku-4-5-20251001")
    AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "2000"))
    AI_TIMEOUT = float(os.environ.get("AI_TIMEOUT", "45"))

    # "live": recompute training status from program dates on every read.
    # "stored": surface the snapshot written at the last save.
    TRAINING_STATUS_SOURCE = os.environ.get("TRAINING_STATUS_SOURCE", "live")
    TRAINING_EXPIRY_WARNING_DAYS = int(os.environ.get("TRAINING_EXPIRY_WARNING_DAYS", "30"))
    TRAINING_HOURS_BENCHMARK_SECTOR = os.environ.get("TRAINING_HOURS_BENCHMARK_SECTOR", "Default")

    # Query cache shared by the dashboards
    CACHE_TTL = int(os.environ.get("CACHE_TTL", "300"))
    CACHE_MAX_ENTRIES = int(os.environ.get("CACHE_MAX_ENTRIES", "500"))

    # Seeded on first start when no admin exists
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")
