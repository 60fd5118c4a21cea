"""
Operations over configuration records: build, resolve strategies, mount, start/stop, networks.
"""
