"""Prompt templates for the design analysis and the logo previews.

Analysis Template
-----------------
The analysis prompt embeds the project name and the description verbatim
and asks the text provider for a JSON object with exactly two variants::

    Project Name: "<projectName>"
    Visual Identity Description: "<inputText>"

    Task:
    1. Translate the description ...
    2. Create ONLY 2 distinct logo design prompts.
    3. Each prompt MUST include the text "<projectName>" ...
    4. Variation: Style 1 (...), Style 2 (...).

    Return ONLY a JSON object: { ... }

The requirement that the project name appears in each prompt is passed to
the provider; it is not enforced locally.

Logo Preview Prompt
-------------------
When previews are built in process (no gateway), each variant prompt is
decorated with a fixed suffix that pushes the image model towards a clean
vector logo.

Usage
-----
::

    prompt = build_analysis_prompt("SKYLINE", "modern minimal")
    preview = build_logo_image_prompt(variant.prompt)
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Fixed style labels for the two variants.
# ---------------------------------------------------------------------------

STYLE_MINIMAL = "Minimalist & Modern"
STYLE_LUXURY = "Creative & Luxurious"

_LOGO_SUFFIX = "professional vector logo, flat design, white background, high resolution"


def build_analysis_prompt(project_name: str, input_text: str) -> str:
    """Compile the analysis prompt sent to the text provider.

    The output is deterministic for a given pair of inputs.  Both inputs are
    inserted exactly as received (no trimming or escaping).

    Args:
        project_name: Brand name; must appear literally in each variant
            prompt the provider returns.
        input_text: The user's description of the visual identity.

    Returns:
        The full prompt text.
    """
    return f"""
Project Name: "{project_name}"
Visual Identity Description: "{input_text}"

Task:
1. Translate the description to professional English design terminology.
2. Create ONLY 2 distinct logo design prompts.
3. Each prompt MUST include the text "{project_name}" as the primary brand name.
4. Variation: Style 1 ({STYLE_MINIMAL}), Style 2 ({STYLE_LUXURY}).

Return ONLY a JSON object:
{{
  "concept_summary": "Short Arabic summary",
  "variants": [
    {{"id": 1, "title": "تصميم عصري بسيط", "prompt": "Professional minimalist logo for '{project_name}', clean lines, white background, vector style"}},
    {{"id": 2, "title": "تصميم إبداعي فاخر", "prompt": "Luxurious creative logo for '{project_name}', elegant details, high contrast, white background, premium design"}}
  ],
  "colors": [{{"name": "اللون الأساسي", "hex": "#4f46e5"}}]
}}
""".strip()


def build_logo_image_prompt(prompt: str) -> str:
    """Append the vector-logo style suffix to a variant prompt.

    Args:
        prompt: A variant's ``prompt`` text.

    Returns:
        ``"<prompt>, professional vector logo, flat design, ..."``.  A blank
        prompt yields the suffix alone.
    """
    stripped = prompt.strip().rstrip(",")
    if not stripped:
        return _LOGO_SUFFIX
    return f"{stripped}, {_LOGO_SUFFIX}"
