"""Shared domain utilities.

Example usage:
    >>> from prdforge.domain.shared import Ok, Err, Result, is_ok
    >>>
    >>> def find_persona(name: str) -> Result[str, str]:
    ...     if not name:
    ...         return Err("Persona name is empty")
    ...     return Ok(name)
"""

from prdforge.domain.shared.result import Err, Ok, Result, is_err, is_ok

__all__ = [
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
]
