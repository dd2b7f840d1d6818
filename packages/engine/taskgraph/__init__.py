"""
taskgraph: task dependency graph engine

Keeps finish-to-start dependencies between tasks acyclic, bounded and
consistent, and derives each task's blocking state from live data.
"""

__version__ = "0.1.0"
