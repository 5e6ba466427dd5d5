"""Run the API with uvicorn: python -m taskapi."""

import uvicorn

from taskapi.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("taskapi.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
