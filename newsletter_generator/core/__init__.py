"""
Core domain package for Newsletter Generator.
"""
