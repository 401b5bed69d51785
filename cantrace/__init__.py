"""Configuration files, trace rows, offline file list, measurement setup, simulation tree
and channel mapping for a CAN bus tracing tool."""

__version__ = "0.1.0"