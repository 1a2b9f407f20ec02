"""Pydantic models for the JSON status API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from uptime.domain import BucketClass, WebsiteStatus


class BucketModel(BaseModel):
    classification: BucketClass
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class WebsiteStatusModel(BaseModel):
    website: str
    last_ok: Optional[datetime] = Field(description="End of the latest ok run, if any")
    ok_ratio: str = Field(description='Ok runs over all runs, e.g. "50.00%", or "N/A"')
    total_runs: int
    ok_runs: int
    first_time: Optional[datetime] = None
    last_time: Optional[datetime] = None
    buckets: list[BucketModel]

    @classmethod
    def from_status(cls, status: WebsiteStatus) -> "WebsiteStatusModel":
        return cls(
            website=status.website,
            last_ok=status.last_ok,
            ok_ratio=status.ok_ratio,
            total_runs=status.total_runs,
            ok_runs=status.ok_runs,
            first_time=status.first_time,
            last_time=status.last_time,
            buckets=[
                BucketModel(
                    classification=b.classification,
                    start=b.span[0] if b.span else None,
                    end=b.span[1] if b.span else None,
                )
                for b in status.buckets
            ],
        )


class StatusResponse(BaseModel):
    generated_at: datetime
    bucket_count: int
    websites: list[WebsiteStatusModel]
