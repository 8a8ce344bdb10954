"""Isolation forest implementation for anomaly detection.

This package provides the partition tree and the forest that averages
isolation path lengths into a normalised anomaly score.
"""

from .forest import PartitionForest
from .tree import PartitionTree, PartitionTreeNode

__all__ = [
    "PartitionTree",
    "PartitionTreeNode",
    "PartitionForest",
]
