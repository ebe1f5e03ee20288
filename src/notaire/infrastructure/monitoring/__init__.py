"""
Monitoring infrastructure.
"""
