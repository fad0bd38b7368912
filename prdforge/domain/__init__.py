"""Domain layer for prdforge.

Pure data structures and parsing with no network I/O:

- shared: Result monad
- project, prd, persona, task: Pydantic domain models
- generation: update events and processing states
"""
