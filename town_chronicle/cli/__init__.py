# =============================================================================
# town_chronicle/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line access to Town Chronicle outside the web API.
#
#   CHRONICLE (chronicle.py)
#      The offline town: create towns, write and delete stories, inspect
#      crests and mottos, and move towns between machines as base64 share
#      strings.  Data lives in a single JSON file.  Also mints API bearer
#      tokens for operators.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - The CLI constructs its own TownService over JsonFileTownProvider
#     rather than relying on the API's app.state wiring, because it runs
#     as a one-shot command, not a long-lived server.
# =============================================================================

"""CLI tools for Town Chronicle.

- ``python -m town_chronicle.cli`` (or ``town-chronicle``) — offline chronicle.
"""
