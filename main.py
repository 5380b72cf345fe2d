from __future__ import annotations

import logging
import os

import uvicorn

from passpolicy.api import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(preset=os.getenv("PASSPOLICY_PRESET"))

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5005")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
