"""Ariadna planning tools.

Reads and updates the `.planning/` directory that drives phase-based agent
workflows: roadmap, state, phase directories, plans and summaries.
"""

__version__ = "0.1.0"
