"""Search request schemas."""
from bang.schemas.base import CamelModel


class SearchQuery(CamelModel):
    q: str = ""
