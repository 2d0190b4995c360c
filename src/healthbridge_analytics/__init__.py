"""
HealthBridge Analytics - Weight trend analytics and projection engine.

Stores body-weight measurements and goals in a relational store and derives
linear projections, moving-average and plateau trends, goal progress and
period-over-period comparisons.
"""

__version__ = "0.1.0"
