from dotenv import load_dotenv
import os
import logging

import uvicorn

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() == "true"

    logger.info(f"Starting Sterilog API on {host}:{port}")
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)
