"""
Shared utilities for Newsletter Generator.
"""
