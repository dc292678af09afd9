"""Git branch divergence report.

Features:
- Behind/ahead counts of every local branch against a base branch
- Behind/ahead counts of every local branch against its upstream
- Stale and trashed branches hidden unless asked for
- Markdown output, styled when printed to a terminal
"""

__version__ = "0.1.0"
