"""Cluster shape, occupancy and hit resolution histograms for tracker hits."""

__version__ = "0.1.0"