"""Editing core: node model, traversal, context injection and services."""
