import logging

from kanban.config import settings


def configure_logging(level: str = None) -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=settings.LOG_FORMAT)
    # SQL statements are logged only when DATABASE_ECHO is set
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
