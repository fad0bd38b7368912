"""Entry point for the prdforge CLI.

Usage:
    python -m prdforge.interfaces.cli.main

Or via installed entry point:
    prdforge <command>
"""

from prdforge.interfaces.cli import app


def main() -> None:
    """Run the prdforge CLI application."""
    app()


if __name__ == "__main__":
    main()
