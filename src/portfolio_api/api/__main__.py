"""
portfolio_api.api.__main__

Entrypoint for running the FastAPI application via `python -m portfolio_api.api`.
"""

from __future__ import annotations

import uvicorn

from portfolio_api.api.app import create_app
from portfolio_api.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        # The identity header is only trustworthy behind the platform gateway.
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
