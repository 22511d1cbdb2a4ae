"""Base schema classes with camelCase alias generation.

Backend Python code stays snake_case. API JSON becomes camelCase.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for request schemas. Accepts and outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
