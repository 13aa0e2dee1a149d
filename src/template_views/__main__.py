"""Main entry point for template views."""
from .cli import app

if __name__ == "__main__":
    app()
