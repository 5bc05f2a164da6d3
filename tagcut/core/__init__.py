"""Shared primitives: Result type, exit codes, untyped-structure helpers."""
