"""Prompts for the text and image models.

The text prompt asks the model to judge the ingredients first and to answer with a
single minified JSON object carrying "recipe", "image_prompt" and "error". The
image prompt helpers append a fixed photography style and the negative prompt used
to push the image model away from common artifacts.
"""

# Appended to the model-written dish description before image synthesis
IMAGE_STYLE_SUFFIX = (
    "Professional food photography, natural light, shallow depth of field, "
    "appetizing, restaurant plating."
)

NEGATIVE_PROMPT = "low quality, blurry, watermark, text, logo, duplicate"

# Stability weights: negative values steer away from the prompt
NEGATIVE_PROMPT_WEIGHT = -1


def _get_output_contract_section() -> str:
    """JSON output contract shared by the valid and invalid branches."""
    return """Produce output strictly as minified JSON with three fields: "recipe", "image_prompt", and "error".

- If the ingredients are valid and a recipe can be made:
  - "recipe": A complete, well-formatted Markdown string with title, servings, ingredients with amounts, and numbered steps.
  - "image_prompt": A 1-2 sentence photorealistic description of the final plated dish for a text-to-image model.
  - "error": null

- If the ingredients are nonsensical, unreal, or cannot be combined into a reasonable dish:
  - "recipe": null
  - "image_prompt": null
  - "error": A string explaining why a recipe cannot be created (e.g., "Ingredients are not valid food items.")."""


def get_recipe_prompt(ingredients: list[str]) -> str:
    """Build the single user message sent to the text model.

    Args:
        ingredients: Sanitized ingredient names. May be empty; the model is then
            expected to answer with an error.

    Returns:
        str: Complete prompt text.
    """
    joined = ", ".join(ingredients)
    return f"""You are a helpful chef and a discerning food expert. Your task is to create a recipe from a given list of ingredients.

First, evaluate the ingredients:
- Are they real, edible food items?
- Can a sensible recipe be made from them?

{_get_output_contract_section()}

Ingredients to use:
{joined}

Output ONLY the JSON object without any commentary.

Here are my ingredients: {joined}"""


def get_image_prompt(description: str) -> str:
    """Append the photography style to the dish description."""
    return f"{description} {IMAGE_STYLE_SUFFIX}"
