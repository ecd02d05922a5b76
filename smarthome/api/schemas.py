from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, List


class SwitchRequest(BaseModel):
    value: Optional[bool] = None  # omitted => toggle


class DismissRequest(BaseModel):
    key: str = Field(min_length=1)


class DeviceOut(BaseModel):
    device: str
    room: Optional[str]
    value: Optional[float]
    expected: Optional[float]
    active: bool
    timestamp: Optional[str]


class AlertOut(BaseModel):
    level: str
    message: str
    key: str
    visible: bool = True


class LeakOut(BaseModel):
    active: bool
    rooms: List[str]

