"""Query building layer.

This module accumulates filter, order and pagination clauses and
evaluates composed queries for the bundled document backends.
"""
