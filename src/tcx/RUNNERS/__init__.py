"""
Docker-backed engine layer: container handles, wait conditions and log consumers.
"""
