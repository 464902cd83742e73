from dotenv import load_dotenv
import logging

from gastroapp.config import settings


def setup_logging(level: str | None = None) -> None:
    """Initialize logging for scripts and apps embedding the client."""
    load_dotenv()
    log_format = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=(level or settings.log_level).upper(), format=log_format)
