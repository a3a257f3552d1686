"""
Service clients for external systems.
"""
