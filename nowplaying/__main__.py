"""Run the relay with uvicorn: ``python -m nowplaying``."""

import uvicorn

from nowplaying.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "nowplaying.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
