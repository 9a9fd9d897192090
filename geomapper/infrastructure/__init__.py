"""
Infrastructure layer for external position sources.

This layer contains:
- geolocation: Concrete geolocation providers
"""
