import logging
import sys

from onboarding.core.config import settings


def configure_logging() -> None:
    """Configure process-wide logging. Called once when the API starts."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
