from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict


ItemT = TypeVar("ItemT")


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class Page(BaseModel, Generic[ItemT]):
    items: list[ItemT]
    total_count: int
    page_count: int
    page: int
    page_size: int
