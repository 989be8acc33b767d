"""
Pydantic schemas for the runtime configuration admin API.
"""

from typing import Any

from pydantic import Field

from cashtransfer.models.configuration import ConfigType
from cashtransfer.schemas.fees import CamelModel


class ConfigEntryOut(CamelModel):
    key: str
    value: Any = None
    type: ConfigType
    encrypted: bool
    category: str
    description: str | None = None


class ConfigUpdate(CamelModel):
    key: str = Field(..., min_length=1)
    value: Any


class ConfigUpdateRequest(CamelModel):
    updates: list[ConfigUpdate] = Field(..., min_length=1)
