"""
Design Critique Prompts for the evaluator

Holds the fixed rubric: ten scored categories, the AI-slop originality score,
the summary and the refinement list, plus the exact JSON shape to return.
"""

from typing import Optional

from design_critic.api.models import SourceType


# (wire key, label, what to evaluate) in the order the rubric presents them
CATEGORIES = [
    (
        "aestheticCohesion",
        "Aesthetic Cohesion",
        "Overall visual harmony, consistency of design elements, how well components work together",
    ),
    (
        "hierarchyLayout",
        "Hierarchy & Layout",
        "Typography scale, grid systems, use of white space, information architecture",
    ),
    (
        "typography",
        "Typography",
        "Font choices, type system, readability, personality, uniqueness",
    ),
    (
        "colorContrast",
        "Color & Contrast",
        "Color palette effectiveness, contrast ratios, emotional impact, accessibility",
    ),
    (
        "imageryIconography",
        "Imagery & Iconography",
        "Image quality, icon consistency, custom vs generic assets, visual language",
    ),
    (
        "brandExpression",
        "Brand Expression",
        "How well the design expresses brand personality and values",
    ),
    (
        "systemConsistency",
        "System Consistency",
        "Design token discipline, component reusability, systematic approach",
    ),
    (
        "visualCraft",
        "Visual Craft & Detail",
        "Micro-interactions, animation quality, attention to detail, polish",
    ),
    (
        "aiSlopIndicators",
        "AI Slop Indicators",
        "Presence of generic AI-generated patterns (score 1-10, where 1 = heavy AI slop, 10 = highly original)",
    ),
    (
        "emotionalResonance",
        "Emotional Resonance",
        "How the design makes users feel, memorability, human connection",
    ),
]

CATEGORY_KEYS = [key for key, _, _ in CATEGORIES]

AI_SLOP_PATTERNS = [
    "Particle backgrounds (tsparticles)",
    "Generic gradient blur orbs",
    "Overuse of glass-morphism",
    "Common AI color palettes (coral + sage, etc.)",
    "Default typography stacks (Inter + Space Grotesk)",
    "Predictable SaaS template layouts",
    "Generic Heroicons/Lucide icons only",
    "No custom illustrations or branded elements",
]


def get_design_prompt(
    source_type: Optional[SourceType] = None, source_value: Optional[str] = None
) -> str:
    """
    Build the design critique rubric sent alongside the image.

    Args:
        source_type: Where the image came from (optional context line)
        source_value: The URL or original filename (optional context line)

    Returns:
        Complete prompt string with the evaluation framework and JSON format.
    """

    framework = "\n".join(
        f"{i}. **{label}** - {description}"
        for i, (_, label, description) in enumerate(CATEGORIES, 1)
    )
    slop_patterns = "\n".join(f"- {pattern}" for pattern in AI_SLOP_PATTERNS)
    category_shape = ",\n".join(
        f'    "{key}": {{ "score": number, "rationale": "string" }}'
        for key in CATEGORY_KEYS
    )

    prompt = f"""You are an expert design critic with world-class taste and deep knowledge of visual design principles, UX best practices, and modern design trends. Analyze the provided website design/screenshot using the following evaluation framework:

## Evaluation Framework

Evaluate the design across these {len(CATEGORIES)} categories, scoring each from 1-10:

{framework}

## AI Slop Detection

Identify common AI-generated design patterns (score inversely - higher score means less slop):
{slop_patterns}

## Response Format

Respond with a JSON object in this exact structure:

{{
  "overallScore": number (1-10, calculated as average of all categories),
  "categories": {{
{category_shape}
  }},
  "summary": "2-3 paragraph overall assessment of the design",
  "aiSlopDetection": {{
    "score": number (1-10, where 1 = heavy AI slop, 10 = highly original),
    "indicators": ["list", "of", "specific", "AI", "patterns", "found"]
  }},
  "topRefinements": [
    "Specific, actionable recommendation 1",
    "Specific, actionable recommendation 2",
    "Specific, actionable recommendation 3"
  ]
}}

Every score must be a number between 1 and 10. Every rationale must be a non-empty sentence. Return only the JSON object, with no surrounding text.

Be specific, direct, and honest in your assessment. Focus on actionable insights rather than generic observations."""

    if source_type == SourceType.URL and source_value:
        prompt += f"\n\nWebsite URL: {source_value}"

    return prompt
