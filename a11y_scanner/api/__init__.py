"""
HTTP API for the accessibility scanner.
"""
