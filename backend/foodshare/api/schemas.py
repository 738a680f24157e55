"""
Request bodies shared by the routes. JSON keys are camelCase; attributes are snake_case.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from foodshare.core.constants import ADDRESS_MAX_LENGTH


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class LocationBody(CamelModel):
    address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH, description="Pickup address")
    coordinates: list[float] = Field(default_factory=list, description="[longitude, latitude]; empty for none")

    @field_validator("coordinates")
    @classmethod
    def check_coordinates(cls, v: list[float]) -> list[float]:
        if not v:
            return []
        if len(v) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        lng, lat = v
        if not -180 <= lng <= 180 or not -90 <= lat <= 90:
            raise ValueError("Coordinates out of range")
        return v
