"""
core/schemas.py — Core/general Pydantic schemas.

Field names are snake_case everywhere. camelCase exists only as aliases:
requests may use either spelling and responses switch with ?case=camel.
"""

from typing import Any, List, Literal

from fastapi import Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ShopModel(BaseModel):
    """Base for API schemas that accept and can emit camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class HealthCheck(BaseModel):
    status: str = "ok"
    version: str
    database: str
    database_connected: bool = False


Case = Literal["snake", "camel"]


def case_param(case: Case = Query("snake", description="Response key style")) -> str:
    return case


def render(data: Any, case: str = "snake") -> Any:
    """JSON-ready dump of a schema (or list of them) in the requested key style."""
    if isinstance(data, list):
        return [render(item, case) for item in data]
    return data.model_dump(mode="json", by_alias=(case == "camel"))


class Page(BaseModel):
    """Generic paginated response wrapper."""
    items: List[Any]
    total: int
