"""
Shared infrastructure: configuration, logging, errors, backend access.
"""
