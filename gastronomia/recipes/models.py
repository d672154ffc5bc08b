"""
Recipe data models.

Field names follow the JSON shape the recipe model is asked to produce,
so a parsed reply validates straight into ``Recipe``.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)?")


def _coerce_number(value: Any) -> Any:
    """Turn model output like ``"120 kcal"`` into ``120``."""
    if isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if not match:
            return 0
        return float(match.group().replace(",", "."))
    if value is None:
        return 0
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class DietaryFilters(BaseModel):
    """Dietary restrictions the generated recipe must respect."""
    model_config = ConfigDict(populate_by_name=True)

    vegan: bool = False
    gluten_free: bool = Field(default=False, alias="glutenFree")
    lactose_free: bool = Field(default=False, alias="lactoseFree")

    @property
    def active(self) -> bool:
        return self.vegan or self.gluten_free or self.lactose_free


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    quantity: str = ""
    calories: int = 0
    tip: str = ""

    @field_validator("quantity", "tip", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("calories", mode="before")
    @classmethod
    def _calories(cls, value: Any) -> Any:
        number = _coerce_number(value)
        return round(number) if isinstance(number, float) else number


class RecipeStep(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    step_number: int = 0
    title: str = ""
    description: str = ""
    duration: str = ""
    tip: str = ""

    @field_validator("title", "description", "duration", "tip", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _none_to_empty(value)


class Recipe(BaseModel):
    """A complete generated recipe."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    recipe_name: str = ""
    difficulty: str = ""
    prep_time: str = ""
    cook_time: str = ""
    servings: int = 0
    dietary_tags: list[str] = Field(default_factory=list)
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    steps: list[RecipeStep] = Field(default_factory=list)
    calories_total: int = 0
    nutrition_info: str = ""
    chef_tips: str = ""
    substitutions_made: str = ""

    @field_validator("servings", "calories_total", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> Any:
        number = _coerce_number(value)
        return round(number) if isinstance(number, float) else number

    @field_validator("recipe_name", "difficulty", "prep_time", "cook_time", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("dietary_tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value

    @field_validator("chef_tips", "nutrition_info", "substitutions_made", mode="before")
    @classmethod
    def _join_lists(cls, value: Any) -> Any:
        # Models sometimes answer with a list where a paragraph is expected
        if isinstance(value, list):
            return "\n".join(str(item) for item in value)
        return value if value is not None else ""

    @model_validator(mode="after")
    def _fill_total(self) -> Recipe:
        if not self.calories_total and self.ingredients:
            self.calories_total = sum(i.calories for i in self.ingredients)
        for index, step in enumerate(self.steps, start=1):
            if not step.step_number:
                step.step_number = index
        return self


class RecipeContext(BaseModel):
    """Recipe summary sent along with chat messages."""
    name: str = ""
    ingredients: str = ""
    preparation: str = ""
    calories: int = 0

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> RecipeContext:
        return cls(
            name=recipe.recipe_name,
            ingredients="\n".join(
                f"{i.quantity} {i.name}".strip() for i in recipe.ingredients
            ),
            preparation="\n".join(
                f"{s.step_number}. {s.title}: {s.description}" for s in recipe.steps
            ),
            calories=recipe.calories_total,
        )
