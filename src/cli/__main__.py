# =============================================================================
# src/cli/__main__.py: Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli --favorites 7 --limit 5
#
# Delegates to the recommend CLI, the most common check during
# development.  For the layout tool run it directly:
#     python -m src.cli.sections show --page home
# =============================================================================

"""Allow ``python -m src.cli`` execution (runs ``src.cli.recommend``)."""

import sys

from src.cli.recommend import main

sys.exit(main())
