from __future__ import annotations

from pydantic import BaseModel


class TestWebhookResult(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
