"""Allocation and lifecycle engine for Build-To-Order housing projects."""

__version__ = "0.1.0"
