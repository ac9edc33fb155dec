import logging

# Global project logger (tuned via logging_config)
LOGGER_NAME = "spotify_ai_playlists"
logger = logging.getLogger(LOGGER_NAME)


def log_section(title: str) -> None:
    """
    Log a top-level section header.
    """
    logger.info("=== %s ===", title)


def log_info(message: str) -> None:
    logger.info("%s", message)


def log_step(message: str) -> None:
    """
    Action step / ongoing work.
    """
    logger.info("→ %s", message)


def log_success(message: str) -> None:
    logger.info("✅ %s", message)


def log_warning(message: str) -> None:
    """
    Non-fatal problem: a missed track, a rejected batch.
    """
    logger.warning("⚠️ %s", message)


def log_error(message: str) -> None:
    logger.error("❌ %s", message)


def log_progress(
    current: int,
    total: int,
    prefix: str = "",
) -> None:
    """
    Simple progress logging.

    Example:
      log_progress(10, 20, prefix="Matching tracks")
      -> "Matching tracks 10/20 (50.0%)"
    """
    if total <= 0:
        total = 1

    fraction = max(0.0, min(1.0, current / total))
    percent = fraction * 100

    if prefix:
        logger.info("%s %d/%d (%.1f%%)", prefix, current, total, percent)
    else:
        logger.info("%d/%d (%.1f%%)", current, total, percent)
