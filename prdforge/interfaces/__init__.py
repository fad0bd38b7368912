"""Interface layer for prdforge.

- CLI: Command-line interface using Typer
- TUI: see ``prdforge.tui`` (Textual)
"""
