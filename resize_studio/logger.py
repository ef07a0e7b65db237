import contextlib
import logging
import os
import sys

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def setup_logger(level: int = logging.INFO, name: str = "resize_studio") -> logging.Logger:
    """Create or update the project logger.

    - Respects env overrides RESIZE_STUDIO_LOG_LEVEL/RESIZE_STUDIO_LOG_CATS on every
      call (so late CLI parsing can still take effect).
    - Ensures there is exactly one StreamHandler on the base logger and updates
      its formatter/filters instead of bailing out early.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv("RESIZE_STUDIO_LOG_LEVEL") or "").strip().lower()
    if env_level:
        level = _LEVELS.get(env_level, level)
    logger.setLevel(level)

    stream_handler: logging.StreamHandler | None = None
    for h in list(logger.handlers):
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            stream_handler = h
            break

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        logger.addHandler(stream_handler)

    fmt = logging.Formatter(
        fmt="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    stream_handler.setFormatter(fmt)

    # Category filter: record.name like resize_studio.preview, resize_studio.client
    stream_handler.filters.clear()
    cats = (os.getenv("RESIZE_STUDIO_LOG_CATS") or "").strip()
    if cats:
        allowed = {c.strip() for c in cats.split(",") if c.strip()}

        class _CategoryFilter(logging.Filter):
            def filter(self, record: logging.LogRecord) -> bool:
                parts = (record.name or "").split(".")
                suffix = parts[-1] if parts else record.name
                return suffix in allowed

        stream_handler.addFilter(_CategoryFilter())

    logger.propagate = False
    return logger


def apply_cli_logging_options(argv: list[str]) -> list[str]:
    """Move --log-level/--log-cats into the environment and return the remaining args.

    Runs before Qt sees argv so unknown options never reach QCoreApplication.
    """
    import argparse

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level")
    parser.add_argument("--log-cats")
    with contextlib.suppress(SystemExit):
        args, remaining = parser.parse_known_args(argv)
        if args.log_level:
            os.environ["RESIZE_STUDIO_LOG_LEVEL"] = args.log_level
        if args.log_cats:
            os.environ["RESIZE_STUDIO_LOG_CATS"] = args.log_cats
        return remaining
    return list(argv)


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
