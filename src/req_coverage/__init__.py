"""Requirement coverage engine.

Classifies requirement table rows, builds the requirement derivation graph,
propagates checkpoint evidence through it and aggregates coverage counts.
"""

__version__ = "1.0.0"
