"""Prompt builders for the recipe and chef chat handlers."""

from __future__ import annotations

import json

from .models import DietaryFilters, RecipeContext

CHEF_SYSTEM_PROMPT = (
    "You are Gastronom.IA, a friendly virtual chef. Only answer questions "
    "about cooking, ingredients, techniques, kitchen equipment and food "
    "nutrition; politely decline anything else. Keep answers short."
)

SUBSTITUTION_INSTRUCTION = (
    "When the user asks to replace an ingredient of the current recipe, end "
    "your answer with the marker <<<SUBSTITUIR: old ingredient >>> new "
    "ingredient>>> so the app can update the recipe."
)

RECIPE_SHAPE = {
    "recipe_name": "",
    "difficulty": "Easy | Medium | Hard",
    "prep_time": "",
    "cook_time": "",
    "servings": 0,
    "dietary_tags": [],
    "ingredients": [{"name": "", "quantity": "", "calories": 0, "tip": ""}],
    "steps": [
        {"step_number": 1, "title": "", "description": "", "duration": "", "tip": ""}
    ],
    "calories_total": 0,
    "nutrition_info": "",
    "chef_tips": "",
    "substitutions_made": "",
}


def filter_labels(filters: DietaryFilters | None) -> list[str]:
    if filters is None:
        return []
    labels = []
    if filters.vegan:
        labels.append("vegan (no animal products)")
    if filters.gluten_free:
        labels.append("gluten-free")
    if filters.lactose_free:
        labels.append("lactose-free")
    return labels


def build_filter_instructions(filters: DietaryFilters | None) -> str:
    labels = filter_labels(filters)
    if not labels:
        return ""
    lines = "\n".join(f"- {label}" for label in labels)
    return (
        f"\n\nThe recipe MUST be:\n{lines}\n"
        "Replace incompatible ingredients and list the replacements in "
        "substitutions_made."
    )


def build_recipe_prompt(
    *,
    ingredients: list[str] | None = None,
    filters: DietaryFilters | None = None,
    existing_recipe: str | None = None,
) -> str:
    """Build the single user prompt for generate or transform requests."""
    filter_text = build_filter_instructions(filters)

    if existing_recipe:
        prompt = (
            "Rewrite the following recipe applying the dietary filters while "
            f"keeping its flavour as close as possible.\n\n{existing_recipe}"
            f"{filter_text}"
        )
    else:
        prompt = (
            "Create ONE complete, detailed recipe using these ingredients: "
            f"{', '.join(ingredients or [])}.{filter_text}"
        )

    return (
        f"{prompt}\n\nAnswer with valid JSON only, in this shape:\n"
        f"{json.dumps(RECIPE_SHAPE, indent=2)}"
    )


def build_chef_system_prompt(recipe_context: RecipeContext | None = None) -> str:
    """System prompt for the chef chat, with the current recipe if any."""
    if recipe_context is None:
        return CHEF_SYSTEM_PROMPT

    return (
        f"{CHEF_SYSTEM_PROMPT}\n\nThe user is looking at this recipe:\n"
        f"Name: {recipe_context.name}\n"
        f"Ingredients:\n{recipe_context.ingredients}\n"
        f"Preparation:\n{recipe_context.preparation}\n"
        f"Calories: {recipe_context.calories}\n\n"
        f"{SUBSTITUTION_INSTRUCTION}"
    )
