# src/quadrant_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either runs a single command given on
the command line (`quadrant-tasks /list`) or starts the console REPL.
"""

from __future__ import annotations

import logging
import shlex
import sys

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)
    state = create_initial_state(settings=settings)

    try:
        if argv:
            line = " ".join(shlex.quote(a) for a in argv)
            if not line.startswith("/"):
                line = "/" + line
            reply = command_registry.handle(state, line)
            print(reply if reply is not None else command_registry.build_help())
        else:
            run_console_loop(state)
    finally:
        shutdown_state(state)
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
