"""
gym-planner: workout programs, session snapshots and training analytics.
"""

__version__ = "0.3.0"
