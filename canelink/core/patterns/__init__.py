"""Reusable patterns: status table, backoff and the event bus."""
