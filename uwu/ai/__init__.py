"""
The `ai` package turns a command description into a command: it talks to the
configured provider through aisuite and sanitizes the reply.
"""

from .generator import generate_command
from .sanitizer import find_last_command, last_matched, looks_like_sentence, sanitize_response


__all__ = [
    "generate_command",
    "sanitize_response",
    "find_last_command",
    "last_matched",
    "looks_like_sentence",
]
