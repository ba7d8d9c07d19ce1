# models.py
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Dict, List, Optional


def is_scalar(value):
    return value is None or isinstance(value, (str, bool, int, float))


def as_text(value):
    """Render a scalar feed value the way it should appear in a flattened record."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'True' if value else 'False'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    raise ValueError(f"expected a scalar value, got {type(value).__name__}")


class UpstreamDetail(BaseModel):
    model_config = ConfigDict(extra='ignore')

    date: Optional[str] = None
    valeurs: Dict[str, Optional[str]] = {}

    @field_validator('date', mode='before')
    @classmethod
    def render_date(cls, value):
        return as_text(value)

    @field_validator('valeurs', mode='before')
    @classmethod
    def render_values(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("valeurs must be an object")
        # nested values are never read by a flattened record
        return {key: as_text(item) for key, item in value.items() if is_scalar(item)}


class UpstreamDocument(BaseModel):
    model_config = ConfigDict(extra='ignore')

    dateStart: Optional[str] = None
    dateEnd: Optional[str] = None
    recentHour: Optional[str] = None
    indexDonneePlusRecent: Optional[int] = None
    nbDateAvecData: Optional[int] = None
    details: List[UpstreamDetail]

    @field_validator('dateStart', 'dateEnd', 'recentHour', mode='before')
    @classmethod
    def render_text(cls, value):
        return as_text(value)

    @field_validator('details', mode='before')
    @classmethod
    def keep_object_entries(cls, value):
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
        return value
