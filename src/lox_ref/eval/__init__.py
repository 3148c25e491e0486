"""Evaluator helper modules for the Lox runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "control",
    "expr",
    "fn",
    "helpers",
]
