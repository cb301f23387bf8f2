from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

class RestaurantSetting(BaseModel):
    key: str
    value: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class RestaurantSettingUpdate(BaseModel):
    value: str = Field(..., min_length=1, max_length=100)
