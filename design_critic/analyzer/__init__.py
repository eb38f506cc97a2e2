# Analyzer package - design critique engine
from .prompts import get_design_prompt, CATEGORY_KEYS
from .validator import shape_result

__all__ = [
    "get_design_prompt",
    "CATEGORY_KEYS",
    "shape_result",
]
