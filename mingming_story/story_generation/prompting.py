"""
Prompt construction utilities for the Mingming Story generation workflow.
"""

from __future__ import annotations

from dataclasses import dataclass

PANEL_COUNT = 5

CHARACTER_PROMPT_NAME = "MINGK the dog"
CHARACTER_CAPTION_NAME = "Mingming"

STORY_TYPES = ("adventure", "family fun", "educational")
IMAGE_STYLES = ("realistic", "3d cartoon", "water color")

_NO_APPEARANCE = (
    "do not describe Mingming's appearance or species, just refer to him as MINGK"
)


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the chat model.
    """

    system: str
    user: str

    def as_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def build_story_prompt(subject: str, story_type: str, image_style: str) -> StoryPrompt:
    """
    Build the prompt pair asking for a titled, five-panel story as strict JSON.
    """
    subject = _require_text("subject", subject)
    story_type = _require_text("story_type", story_type)
    image_style = _require_text("image_style", image_style)

    panel_schema = ",\n".join(_panel_schema_entry(number) for number in range(1, PANEL_COUNT + 1))

    system_prompt = f"""You are a creative children's story writer specializing in stories about a dog named {CHARACTER_CAPTION_NAME}.
Create a story with EXACTLY {PANEL_COUNT} panels (no more, no less):
- Panel 1: A cover image with a title that captures the key themes. IMPORTANT: The cover image MUST prominently feature {CHARACTER_PROMPT_NAME} as the main subject.
- Panels 2-{PANEL_COUNT}: Each with an image description and a few lines of caption text

The story should be age-appropriate, engaging, and follow the theme provided.

Output the result as a JSON object with this structure:
{{
  "title": "Story Title",
  "panels": [
{panel_schema}
  ]
}}

IMPORTANT:
- You MUST create EXACTLY {PANEL_COUNT} panels, numbered 1 through {PANEL_COUNT}
- Each panel MUST have both an imagePrompt and text field
- In image prompts, refer to the dog as '{CHARACTER_PROMPT_NAME}'. In caption text, refer to the dog as '{CHARACTER_CAPTION_NAME}'.
- DO NOT include markdown formatting, code blocks, or backticks in your response
- Return ONLY the JSON object with no additional text

IMPORTANT GUIDELINES FOR IMAGE PROMPTS:
1. Always refer to the dog as "{CHARACTER_PROMPT_NAME}" in image prompts
2. Each image prompt MUST feature EXACTLY ONE {CHARACTER_PROMPT_NAME} as the main subject
3. ALWAYS ensure the image prompt directly illustrates the caption text. Make image prompts detailed and vivid, but focus on the scene and action
4. NEVER describe what kind of dog MINGK is or any physical characteristics
5. Start each image prompt with "{image_style} style"
6. DO NOT include descriptions of {CHARACTER_PROMPT_NAME}'s families
"""

    user_prompt = f"""Create a story about {subject} in the style of {story_type}.

IMPORTANT GUIDELINES:
1. Each image prompt MUST directly illustrate its corresponding caption text
2. Each image prompt MUST feature EXACTLY ONE MINGK dog as the main subject
3. All image prompts should start with "{image_style} style"
4. DO NOT include markdown formatting, code blocks, or backticks in your response
5. Return ONLY the JSON object with no additional text"""

    return StoryPrompt(system=system_prompt, user=user_prompt)


def _panel_schema_entry(number: int) -> str:
    if number == 1:
        image_prompt = (
            "Detailed description for cover image generation with MINGK the dog as the main "
            f"subject and focal point ({_NO_APPEARANCE})"
        )
        text = "Story Title"
    else:
        image_prompt = (
            f"Detailed description for panel {number} image that directly illustrates the "
            f"caption text ({_NO_APPEARANCE})"
        )
        text = f"Caption text for panel {number}"
    return (
        "    {\n"
        f'      "imagePrompt": "{image_prompt}",\n'
        f'      "text": "{text}"\n'
        "    }"
    )


def _require_text(name: str, value: str) -> str:
    if not value or not str(value).strip():
        raise ValueError(f"{name} must be a non-empty string.")
    return str(value).strip()
