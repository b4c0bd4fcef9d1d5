import os
import sys

from loguru import logger

# bound per batch by AggregationEngine.process_batch
DEFAULT_EXTRA = {"chain": "-", "blocks": "-"}


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str = "logs") -> None:
    """Configure loguru for the indexer.

    Every line carries the chain id and block range of the batch being
    processed (``-`` outside a batch). The file sink keeps DEBUG, so skipped
    events can be traced after the fact.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()
    logger.configure(extra=DEFAULT_EXTRA)

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<magenta>{extra[chain]}@{extra[blocks]}</magenta> | "
                "<cyan>{name}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        os.path.join(log_dir, "indexer_{time:YYYY-MM-DD}.log"),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[chain]}@{extra[blocks]} | {name} - {message}",
        rotation="50 MB",
        retention="3 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
