from .logs import (
    LogRecordModel,
    LogSourceModel,
    LogViewClosedResponse,
    LogViewListResponse,
    LogViewResponse,
    LogViewSummary,
    OpenRuntimeViewRequest,
    SelectSourceRequest,
    SetTailRequest,
)
from .meta import HealthResponse, RootResponse, SetTimezoneRequest, SetTimezoneResponse

__all__ = [
    "HealthResponse",
    "LogRecordModel",
    "LogSourceModel",
    "LogViewClosedResponse",
    "LogViewListResponse",
    "LogViewResponse",
    "LogViewSummary",
    "OpenRuntimeViewRequest",
    "RootResponse",
    "SelectSourceRequest",
    "SetTailRequest",
    "SetTimezoneRequest",
    "SetTimezoneResponse",
]
