"""Core primitives."""
