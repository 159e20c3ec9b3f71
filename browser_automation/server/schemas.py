"""Request bodies of the control API (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NavigateRequest(ApiModel):
    url: str
    wait_for: str = Field("load", alias="waitFor")
    timeout: Optional[int] = None


class ReloadRequest(ApiModel):
    wait_for: str = Field("load", alias="waitFor")
    timeout: Optional[int] = None


class BackRequest(ApiModel):
    timeout: Optional[int] = None


class InteractRequest(ApiModel):
    selector: Optional[str] = None
    text: Optional[str] = None
    value: Optional[Union[str, List[str]]] = None
    label: Optional[Union[str, List[str]]] = None
    index: Optional[Union[int, List[int]]] = None
    key: Optional[str] = None
    button: str = "left"
    click_count: int = Field(1, alias="clickCount")
    delay: float = 0
    force: bool = False
    clear: bool = False
    timeout: Optional[int] = None


class ElementQueryRequest(ApiModel):
    selector: str
    name: Optional[str] = None


class WaitRequest(ApiModel):
    condition: str
    value: Optional[Any] = None
    timeout: Optional[int] = None
    state: Optional[str] = None


class WaitLoadRequest(ApiModel):
    state: str = "load"
    timeout: Optional[int] = None


class WaitElementRequest(ApiModel):
    selector: str
    state: str = "visible"
    timeout: Optional[int] = None


class ViewportRequest(ApiModel):
    preset: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class ValidateElementsRequest(ApiModel):
    app: Optional[str] = None
    strict: bool = False
    timeout: Optional[int] = None


class UpdateElementRequest(ApiModel):
    app: Optional[str] = None
    path: str
    element: Dict[str, Any]


class StoreQueryRequest(ApiModel):
    app: Optional[str] = None
    query: str


class StoreWaitRequest(ApiModel):
    app: Optional[str] = None
    query: str
    value: Any = None
    timeout: int = 30000
    poll_interval: int = Field(100, alias="pollInterval")


class StoreValidateRequest(ApiModel):
    app: Optional[str] = None


class ScreenshotRequest(ApiModel):
    name: str = "screenshot"
    full_page: bool = Field(False, alias="fullPage")
    selector: Optional[str] = None
    viewport: Optional[Union[str, Dict[str, Any]]] = None
    format: str = "png"
    quality: Optional[int] = None
    test_name: Optional[str] = Field(None, alias="testName")


class CleanupRequest(ApiModel):
    max_age_days: Optional[int] = Field(None, alias="maxAgeDays")
