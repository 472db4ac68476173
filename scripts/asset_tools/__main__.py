"""
Entry point for ``python -m asset_tools``.
"""

from .cli import app

if __name__ == "__main__":
    app()
