"""
Tickbot App - Tick Decision and Contract Lifecycle Engine

A trading automation engine for tick-based digit contracts on synthetic
indices. Watches a live price stream, derives digit and movement statistics,
detects strategy entries, sizes stakes under a martingale/recovery policy and
manages the lifecycle of the resulting contracts.
"""

__version__ = "0.1.0"
__author__ = "Tickbot Team"
