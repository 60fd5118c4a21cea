"""
Parsers for fixture files.
"""
