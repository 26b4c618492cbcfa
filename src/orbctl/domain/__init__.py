"""Domain layer: orb schema, deltas, migration rules, and validation.

This layer depends only on stdlib, pydantic, and packaging.
It must never import from services, infrastructure, commands, or config.
"""
