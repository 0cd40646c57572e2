"""
Newsletter Generator - Multi-provider AI Newsletter Generation Pipeline

Turns a topic and a set of generation options into a structured,
multi-section newsletter by orchestrating interchangeable AI providers,
each of which may fail independently.
"""

__version__ = "1.0.0"
__author__ = "Newsletter Generator Team"
