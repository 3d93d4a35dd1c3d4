from __future__ import annotations
import logging

import uvicorn
from fastapi import FastAPI

from .config import load_config
from .routers.activities import router as activities_router
from .routers.analytics import router as analytics_router
from .routers.deals import router as deals_router
from .routers.integrations import router as integrations_router
from .routers.leads import router as leads_router
from .routers.logs import router as logs_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="SalesPulse CRM API")

app.include_router(leads_router)
app.include_router(deals_router)
app.include_router(activities_router)
app.include_router(analytics_router)
app.include_router(integrations_router)
app.include_router(logs_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "salespulse"}


def run():
    cfg = load_config()
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port)


if __name__ == "__main__":
    run()
