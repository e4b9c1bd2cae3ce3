from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


class ReaderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_level: str = Field(default="INFO", alias="POTREE_LOG_LEVEL")
    # False keeps intensity/classification columns allocated but zero-filled
    decode_scalar_columns: bool = Field(default=True, alias="POTREE_DECODE_SCALARS")
    max_points: Optional[int] = Field(default=None, ge=0, alias="POTREE_MAX_POINTS")

    @field_validator("max_points", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReaderConfig":
        return cls.model_validate(dict(os.environ if environ is None else environ))


settings = ReaderConfig.from_env()
