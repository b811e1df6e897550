"""
Entry point for running SciSent as a module.

Usage:
    python -m scisent --help
    python -m scisent extract paper.pdf --limit 3
    python -m scisent info
"""
from .cli import app


if __name__ == "__main__":
    app()
