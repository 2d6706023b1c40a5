# =============================================================================
# town_chronicle/cli/__main__.py — Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m town_chronicle.cli
#
# Delegates to the offline chronicle (chronicle.py), the only CLI tool.
# =============================================================================

"""Allow ``python -m town_chronicle.cli`` execution."""

from town_chronicle.cli.chronicle import main

main()
