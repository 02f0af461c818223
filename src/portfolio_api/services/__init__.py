"""
portfolio_api.services

Service layer.

Responsibilities:
- Business rules around the repository (slugs, publish-time validation, dashboard stats).
"""

# Package marker.
