"""Logging for the ``apply_agent`` package: console plus one file per day, stdlib only."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

PACKAGE = "apply_agent"
_LOG_DIR = Path(os.environ.get("APPLY_AGENT_LOG_DIR", Path(__file__).resolve().parent.parent / "logs"))
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def _level(name: str | None) -> int:
    value = logging.getLevelName((name or os.environ.get("LOG_LEVEL", "INFO")).upper())
    return value if isinstance(value, int) else logging.INFO


def configure(level: str | None = None, log_dir: Path | None = None) -> None:
    """Install (or replace) the package handlers. ``level`` overrides LOG_LEVEL."""
    global _configured
    pkg = logging.getLogger(PACKAGE)
    for handler in list(pkg.handlers):
        pkg.removeHandler(handler)
        handler.close()
    pkg.setLevel(logging.DEBUG)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_level(level))
    console.setFormatter(formatter)
    pkg.addHandler(console)
    _configured = True

    log_dir = log_dir or _LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / f"apply_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        pkg.warning("File logging disabled (%s)", exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    pkg.addHandler(fh)


def get_logger(name: str) -> logging.Logger:
    """Named logger under the package; handlers are installed on first use."""
    if not _configured:
        configure()
    if name != PACKAGE and not name.startswith(PACKAGE + "."):
        name = f"{PACKAGE}.{name}"
    return logging.getLogger(name)
