from __future__ import annotations

from pydantic import BaseModel


class DutyStationV1(BaseModel):
    code: str
    country_code: str
    name: str
    common_name: str = ""
    latitude: float
    longitude: float
    obsolete: bool = False
    region: str = ""
