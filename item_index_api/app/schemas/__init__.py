"""
Pydantic schema definitions for API payloads.

Schemas are separate from the index's own dataclasses so that the JSON
representation can change without touching the core.
"""
