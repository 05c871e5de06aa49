"""Utility helpers for the agent-os CLI."""
