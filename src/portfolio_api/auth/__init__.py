"""
portfolio_api.auth

Authentication/authorization package.

Responsibilities:
- Gateway principal parsing.
- Route policy table.
- Gatekeeping middleware and FastAPI identity dependencies.
"""

# Package marker.
