"""
Ingredient substitutions proposed by the chef chat.

The assistant marks a swap in its reply as::

    <<<SUBSTITUIR: old ingredient >>> new ingredient>>>
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import RecipeIngredient

SUBSTITUTION_RE = re.compile(r"<<<SUBSTITUIR:\s*(.+?)\s*>>>\s*(.+?)>>>")


@dataclass(frozen=True)
class Substitution:
    old_name: str
    new_name: str


def parse_substitution(text: str) -> Substitution | None:
    """Find the first substitution marker in an assistant reply."""
    match = SUBSTITUTION_RE.search(text)
    if not match:
        return None
    old_name = match.group(1).strip().lower()
    new_name = match.group(2).strip()
    if not old_name or not new_name:
        return None
    return Substitution(old_name=old_name, new_name=new_name)


def apply_substitution(
    ingredients: list[RecipeIngredient], substitution: Substitution
) -> tuple[list[RecipeIngredient], bool]:
    """Rename every ingredient matching the substitution.

    An ingredient matches when its lower-cased name contains the old name or
    is contained in it. Returns the new list and whether anything changed.
    """
    old_name = substitution.old_name
    updated = []
    changed = False

    for ingredient in ingredients:
        name = ingredient.name.lower()
        if name and (old_name in name or name in old_name):
            if ingredient.name != substitution.new_name:
                changed = True
            updated.append(ingredient.model_copy(update={"name": substitution.new_name}))
        else:
            updated.append(ingredient)

    return updated, changed
