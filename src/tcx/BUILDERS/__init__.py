"""
Image sources built by the container engine.
"""
