from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OpenRuntimeViewRequest(BaseModel):
    tail: Optional[int] = Field(default=None)


class SelectSourceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: str = Field(..., min_length=1, alias="containerId")


class SetTailRequest(BaseModel):
    # Left loose so malformed depths reach the controller's validation
    tail: Union[int, str]


class LogSourceModel(BaseModel):
    source_id: str
    name: str
    state: str
    label: str


class LogRecordModel(BaseModel):
    blank: bool
    severity: Optional[str] = None
    timestamp: Optional[str] = None
    message_html: Optional[str] = None
    message_text: Optional[str] = None


class LogViewResponse(BaseModel):
    view_id: str
    kind: Literal["runtime", "deployment"]
    application_id: str
    title: str
    state: Literal["connecting", "receiving", "ended", "error", "no_source"]
    generation: int
    sources: List[LogSourceModel] = Field(default_factory=list)
    source_id: Optional[str] = None
    tail_depth: Optional[int] = None
    records: List[LogRecordModel] = Field(default_factory=list)
    placeholder: Optional[str] = None
    detail: Optional[str] = None
    stream_url: str


class LogViewSummary(BaseModel):
    view_id: str
    kind: str
    application_id: str
    title: str
    state: str


class LogViewListResponse(BaseModel):
    views: List[LogViewSummary] = Field(default_factory=list)


class LogViewClosedResponse(BaseModel):
    ok: bool = True
