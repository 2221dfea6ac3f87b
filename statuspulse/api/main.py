from __future__ import annotations

from fastapi import FastAPI

from statuspulse.api.routers import channels, health, slos, status

app = FastAPI(title="Statuspulse API")

app.include_router(status.router)
app.include_router(slos.router)
app.include_router(channels.router)
app.include_router(health.router)
