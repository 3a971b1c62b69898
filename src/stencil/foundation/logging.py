"""Logging setup shared by ``stencil serve`` and the one-shot commands.

Build tool output is forwarded line by line at INFO, so the default WARNING
level keeps a terminal quiet; ``--log-level INFO`` shows builds as they run.

Level resolution, first match wins:
    1. ``level`` argument (``--log-level``)
    2. STENCIL_LOG_LEVEL
    3. STENCIL_DEBUG=true
    4. ``debug`` argument (``--debug`` or ``debug: true`` in config)
    5. WARNING
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = Path(".stencil") / "logs"

_CONSOLE_FORMAT = "%(name)s: %(message)s"
_DETAIL_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Keep library chatter out of build logs
_QUIET = ("asyncio", "httpx", "httpcore", "uvicorn.access")

_KEEP_RUN_LOGS = 10


def resolve_level(*, level: int | str | None = None, debug: bool = False) -> int:
    """Pick the console level from arguments and STENCIL_* variables."""
    if level is not None:
        return _parse_level(level)
    if env_level := os.environ.get("STENCIL_LOG_LEVEL"):
        return _parse_level(env_level)
    if os.environ.get("STENCIL_DEBUG", "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return logging.DEBUG if debug else logging.WARNING


def configure_logging(
    *,
    level: int | str | None = None,
    debug: bool = False,
    log_dir: Path | None = None,
) -> int:
    """Install the console handler and, with ``log_dir``, a per-run log file.

    The run log always records DEBUG, including every line of build output,
    whatever the console level is. Only the newest run logs are kept.

    Returns:
        The console log level.
    """
    console_level = resolve_level(level=level, debug=debug)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG if log_dir is not None else console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        logging.Formatter(_DETAIL_FORMAT if console_level <= logging.DEBUG else _CONSOLE_FORMAT)
    )
    root.addHandler(console)

    if log_dir is not None:
        try:
            root.addHandler(_run_log_handler(log_dir))
        except OSError as e:
            logging.getLogger(__name__).warning("Run log disabled, cannot write to %s: %s", log_dir, e)

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)

    return console_level


def _run_log_handler(log_dir: Path) -> logging.FileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)

    older = sorted(log_dir.glob("run-*.log"), reverse=True)
    for stale in older[_KEEP_RUN_LOGS - 1:]:
        stale.unlink(missing_ok=True)

    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    handler = logging.FileHandler(log_dir / f"run-{stamp}-{os.getpid()}.log", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_DETAIL_FORMAT))
    return handler


def _parse_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    if value.isdigit():
        return int(value)
    named = logging.getLevelName(value.upper())
    return named if isinstance(named, int) else logging.WARNING
