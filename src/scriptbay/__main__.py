"""Entry point: python -m scriptbay."""

import uvicorn

from scriptbay.app import create_app
from scriptbay.config import HOST, LOG_LEVEL, PORT

if __name__ == "__main__":
    uvicorn.run(create_app(), host=HOST, port=PORT, log_level=LOG_LEVEL)
