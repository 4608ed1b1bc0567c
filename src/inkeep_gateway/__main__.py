"""Run the gateway with uvicorn: ``python -m inkeep_gateway``."""

from __future__ import annotations

import logging

import uvicorn

from inkeep_gateway.core.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.api.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "inkeep_gateway.api.server:app",
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.api.log_level,
    )


if __name__ == "__main__":
    main()
