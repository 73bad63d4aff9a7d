"""Rich-handler logging preset."""
import logging
from rich.logging import RichHandler
from .app_config import settings

def configure(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        format="%(name)-22s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )
