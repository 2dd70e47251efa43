from typing import Literal

from pydantic import BaseModel, Field, ValidationError

class SettingsSchema(BaseModel):
    weight_unit: Literal["lbs", "kg"] = "lbs"
    weight_increment: float = Field(5.0, gt=0)
    default_weight: float = Field(135.0, ge=0)
    default_reps: int = Field(5, ge=1)
    first_weekday: int = Field(0, ge=0, le=6)
    weekly_volume_weeks: int = Field(4, ge=1)
    one_rep_max_formula: Literal["epley", "brzycki"] = "epley"

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
