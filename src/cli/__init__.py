# =============================================================================
# src/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Standalone command-line tools, each runnable via
# `python -m src.cli.<module>`:
#
#   1. RECOMMEND (recommend.py)
#      Runs the tiered sales-for-you aggregation against a local catalog
#      and prints the candidates with their tier badges.
#
#   2. SECTIONS (sections.py)
#      Shows and edits the stored per-page section layout through the
#      same PreferenceStore the API uses.
#
# Both modules use argparse and build their own dependencies, since they
# run as one-shot scripts rather than inside the server.
# =============================================================================

"""CLI tools for the personalization core.

- ``python -m src.cli.recommend``: print tiered sale recommendations.
- ``python -m src.cli.sections``: show or edit section layouts.
"""
