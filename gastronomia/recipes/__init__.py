"""Recipe models, prompt building and model-output handling."""

from .extraction import extract_json_object
from .models import DietaryFilters, Recipe, RecipeContext, RecipeIngredient, RecipeStep
from .substitution import Substitution, apply_substitution, parse_substitution

__all__ = [
    "DietaryFilters",
    "Recipe",
    "RecipeContext",
    "RecipeIngredient",
    "RecipeStep",
    "Substitution",
    "apply_substitution",
    "extract_json_object",
    "parse_substitution",
]
