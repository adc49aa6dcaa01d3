"""Event bus configuration."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, Field

from goldsmith.core.config import config_properties


@config_properties(prefix="goldsmith.events")
class EventBusProperties(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    retry_delay: timedelta = timedelta(seconds=1)
