"""Run the server with `python -m chatgate` (PORT defaults to 3000)."""

import uvicorn

from chatgate.config import settings


def main() -> None:
    uvicorn.run(
        "chatgate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
