import logging

import uvicorn

from apregistry.core.settings import settings


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("apregistry.app:app", host=settings.server_bind, port=settings.server_port)


if __name__ == "__main__":
    main()
