import logging
import sys

_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO"):
    root = logging.getLogger()
    root.setLevel(level)
    # uvicorn --reload re-imports the app; add the stdout handler once
    if any(getattr(h, "_whitelist_sync", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._whitelist_sync = True
    root.addHandler(handler)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncssh").setLevel(logging.WARNING)
