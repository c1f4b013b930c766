import logging

from roomledger.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = None) -> None:
    """Configure root logging once for the API process and CLI scripts."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
    # SQL echo is controlled by the engine, keep the library quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
