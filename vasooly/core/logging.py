import logging

from vasooly.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] [vasooly] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    # uvicorn access lines are noisy in development
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
