from __future__ import annotations

import math
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer


def encode_non_finite(value: float) -> float | str:
    """JSON has no infinities; break-even and DSO sentinels go out as strings."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


Amount = Annotated[float, PlainSerializer(encode_non_finite, return_type=float | str, when_used="json")]


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ResultModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
