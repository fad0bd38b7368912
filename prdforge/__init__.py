"""prdforge - turn PRDs into actionable task lists with a local LLM."""

__version__ = "0.1.0"
