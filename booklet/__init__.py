"""Booklet: personal library and reading tracker"""
__version__ = "0.1.0"
