from typing import List, Optional

from pydantic import BaseModel, Field


class TemplateLocation(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    class Config:
        extra = "allow"


class PermitTemplateForm(BaseModel):
    """
    Template form as submitted by the editor. Only name, parkId and the first
    location feed the permit columns; the whole form is stored verbatim in
    template_data.
    """

    name: Optional[str] = None
    park_id: int = Field(..., alias="parkId")
    locations: List[TemplateLocation] = Field(default_factory=list)

    class Config:
        extra = "allow"
        populate_by_name = True
