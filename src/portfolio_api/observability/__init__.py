"""
portfolio_api.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment.
- Authorization-failure audit sink.
"""

# Package marker.
