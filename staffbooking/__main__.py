"""
Convenience entry point for running staffbooking directly.

Usage: python -m staffbooking [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
