"""
Domain layer for the GeoMapper backend.

This layer contains the business logic organized by domain:
- location: GPS sample filtering and projection onto the site map
"""
