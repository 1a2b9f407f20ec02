from .health import HealthResponse
from .status import BucketModel, StatusResponse, WebsiteStatusModel

__all__ = [
    "HealthResponse",
    "BucketModel",
    "StatusResponse",
    "WebsiteStatusModel",
]
