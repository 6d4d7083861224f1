"""
Inbound request model for template routes
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class TemplateQuery(BaseModel):
    """Body of POST /template/{name}"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    query: StrictStr = Field(..., description="Query text rendered into the template")
    model: Optional[str] = Field(default=None, description="Model overriding the configured default")

    @field_validator("model", mode="before")
    @classmethod
    def drop_non_string_model(cls, v: Any) -> Optional[str]:
        """A model that is not a string is treated as absent"""
        return v if isinstance(v, str) else None
