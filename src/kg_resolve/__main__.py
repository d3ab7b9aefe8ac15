"""Entry point for python -m kg_resolve execution.

This module enables running kg-resolve as a module:
    python -m kg_resolve --help
    python -m kg_resolve candidates --min-score 0.7
"""

from kg_resolve.cli import app

if __name__ == "__main__":
    app()
