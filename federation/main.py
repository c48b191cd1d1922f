"""Federation service entrypoint."""

from __future__ import annotations

import uvicorn

from federation.app import create_app
from federation.config import HOST, LOG_LEVEL, PORT
from federation.db import init_db
from federation.log_config import init_logging

app = create_app()


def main():
    init_logging(LOG_LEVEL)
    init_db()
    uvicorn.run("federation.main:app", host=HOST, port=PORT, reload=False)


if __name__ == "__main__":
    main()
