"""Features module for preprocessing recipes."""

from .recipe import DummyStep, FittedRecipe, NormalizeStep, Recipe

__all__ = ["DummyStep", "FittedRecipe", "NormalizeStep", "Recipe"]
