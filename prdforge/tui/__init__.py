"""Terminal UI for prdforge (Textual)."""
