"""Domain layer: entities, rules, and the state transition engine.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
