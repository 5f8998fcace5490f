"""
Monitoring and observability.
"""
