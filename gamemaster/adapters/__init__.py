"""Integration adapters.

Adapters connect the core navigation and game state to external systems.
"""
