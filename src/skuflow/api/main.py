"""Run the workflow server: ``python -m skuflow.api.main`` or ``skuflow-server``."""

from __future__ import annotations

import uvicorn

from skuflow.api.app import create_app
from skuflow.core.config import AppSettings


def main() -> None:
    settings = AppSettings()
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
