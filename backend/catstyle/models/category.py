"""
Draft of a category handed to the external category store
"""
from pydantic import BaseModel, ConfigDict, Field


class NewCategory(BaseModel):
    """Fields the category store needs to create a category"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=50)
    icon: str
    color: str
    background_color: str = Field(..., alias="backgroundColor")
