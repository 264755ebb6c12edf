"""Shared HTTP and logging utilities."""
