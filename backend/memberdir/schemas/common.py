"""Schemas shared by every collection endpoint."""

from pydantic import BaseModel


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool
