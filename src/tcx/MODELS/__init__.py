"""
Models for container configuration records, strategy specs, directives and networks.
"""
