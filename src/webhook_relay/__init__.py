"""Webhook relay service."""
