"""Payload storage and backend wiring."""
