"""
portfolio_api.api

API package for the portfolio admin service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, exception handlers and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request validation + delegation to services.
# Access control is not done here; it happens in the gatekeeping middleware.
