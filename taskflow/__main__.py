"""Run the line protocol on stdin/stdout: ``python -m taskflow``."""

import sys

from taskflow.config import get_settings
from taskflow.logging_setup import setup_logging
from taskflow.protocol import serve


def main() -> int:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    serve(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
