"""Entry point: `python -m services.attribution_ingest_service`."""

import os

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("services.attribution_ingest_service.main:create_app", host="0.0.0.0", port=port, factory=True)
