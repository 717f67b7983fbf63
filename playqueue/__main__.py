"""``python -m playqueue`` serves the queue API."""

from __future__ import annotations

import uvicorn

from playqueue.config import settings


def main() -> None:
    development = settings.environment == "development"
    uvicorn.run(
        "playqueue.main:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        reload=development,
        log_level="debug" if development else "info",
    )


if __name__ == "__main__":  # pragma: no cover
    main()
