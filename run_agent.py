#!/usr/bin/env python3
"""Entry point to run the auto-apply agent once."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from apply_agent.config import load_run_config
from apply_agent.errors import AgentError
from apply_agent.log import configure, get_logger

log = get_logger("run")


if __name__ == "__main__":
    if "--verbose" in sys.argv:
        configure(level="DEBUG")

    config = load_run_config()
    if "--reset" in sys.argv:
        config.reset = True
    if "--dry-run" in sys.argv:
        config.dry_run = True

    from apply_agent.agent import run

    try:
        result = run(config)
    except AgentError as e:
        log.error("Run aborted: %s", e)
        sys.exit(1)

    log.info("Run complete.")
    log.info("  Applied: %d", result["totalAppliedJobsCount"])
    log.info("  Skipped: %d", len(result["skipped"]))
