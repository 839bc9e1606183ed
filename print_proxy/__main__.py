"""Run the proxy with uvicorn: ``python -m print_proxy``."""

import uvicorn

from print_proxy.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "print_proxy.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
