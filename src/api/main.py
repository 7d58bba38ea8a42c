"""Process entrypoint: serve the FastAPI app on the configured port."""

from __future__ import annotations

import uvicorn

from src.common.logging import configure_logging
from src.common.settings import get_settings


def main() -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(
        "src.api.app:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
