"""Allow running with ``python -m sketch_overlay``."""

from .app import main

main()
