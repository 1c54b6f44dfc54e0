from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UploadErrorKind(str, Enum):
    UNSUPPORTED_FORMAT = "unsupported_format"
    DECODE_ERROR = "decode_error"
    OPTIMIZER_ERROR = "optimizer_error"
    STORAGE_ERROR = "storage_error"
    BUDGET_UNREACHABLE = "budget_unreachable"
    UNEXPECTED = "unexpected"


class UploadResult(BaseModel):
    success: bool
    message: str
    original_size_kb: Optional[float] = None
    compressed_size_kb: Optional[float] = None
    compressed_size_bytes: Optional[int] = None
    url: Optional[str] = None
    key: Optional[str] = None
    backend: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[UploadErrorKind] = None
