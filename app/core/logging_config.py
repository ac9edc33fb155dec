import logging
import sys


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for the API and the CLI.

    - Logs go to stdout
    - One line per event with time, level, and logger name
    - Idempotent: uvicorn may already have installed handlers
    """
    root = logging.getLogger()

    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level)
