"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True

DATABASES = {
    "default": env.db("DATABASE_URL", default="sqlite:///" + str(PROJECT_DIR / "db.sqlite3")),  # noqa: F405
}

# Run Celery tasks inline unless a broker is explicitly configured.
CELERY_TASK_ALWAYS_EAGER = env.bool("CELERY_TASK_ALWAYS_EAGER", default=True)  # noqa: F405

# Logging
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
