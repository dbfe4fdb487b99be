import logging

from fastapi import FastAPI

from autostrm.api.routes import router
from autostrm.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="AutoStrm")
app.include_router(router, prefix="/plugins/autostrm")


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/status")
def status() -> dict:
    return {"service": "autostrm", "state": "running", "base_strm_path": settings.base_strm_path}
