"""Run the ENODIA backend: ``python -m enodia_app``."""

import uvicorn

from enodia_app.config import settings


def main() -> None:
    uvicorn.run(
        "enodia_app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
