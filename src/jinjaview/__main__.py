"""Entry point for running jinjaview as a module.

Usage:
    python -m jinjaview [command] [options]

Example:
    python -m jinjaview render views/index.html --views views
    python -m jinjaview validate views/layout.html
"""

from jinjaview.cli import app

if __name__ == "__main__":
    app()
