"""Curriculum models (static course catalog)"""
from pydantic import BaseModel, ConfigDict


class Module(BaseModel):
    """One unit of curriculum content"""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    category: str  # Category.name
    description: str


class Category(BaseModel):
    """Named group of contiguous modules"""
    model_config = ConfigDict(frozen=True)

    name: str
    display_color: str
    modules: str  # display-only range label, e.g. "1-13"
