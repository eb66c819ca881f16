"""Allow ``python -m reqtrace``."""

from reqtrace.cli import main

main()
