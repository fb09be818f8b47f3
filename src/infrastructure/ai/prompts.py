from __future__ import annotations

from src.domain.entities.viewport import Rect

_SAFETY_EDIT = """Safety & Ethics Policy:
- Requests to adjust skin tone (a tan, darker or lighter skin) are standard photo enhancements and must be fulfilled.
- Refuse any request to change a person's fundamental race or ethnicity. If a request is ambiguous, do not change racial characteristics."""

_SAFETY_FILTER = """Safety & Ethics Policy:
- Filters may subtly shift colors but must never alter a person's fundamental race or ethnicity.
- Refuse any request that explicitly asks to change a person's race."""

_MASK_PREAMBLE = (
    "You will be given two images and a user request. The first image is the photo to edit. "
    "The second image is a black and white mask. Apply the {kind} ONLY to the areas that are "
    "white in the mask; areas that are black must remain completely unchanged. Blend the edit "
    "seamlessly at the edges and keep the original dimensions."
)


def edit_region_prompt(user_prompt: str, region: Rect) -> str:
    return f"""You are an expert generative photo editor AI. The user selected an area of the image to modify. Fulfil the request inside that bounding box and blend the result seamlessly with the rest of the photo.
User Request: "{user_prompt}"
Edit Location: top-left corner (x: {round(region.x)}, y: {round(region.y)}), size (width: {round(region.width)}px, height: {round(region.height)}px).

Editing Guidelines:
- 'remove' requests: fill the area from the surrounding context.
- 'add' requests: generate the object realistically inside the selection.
- 'change' requests: modify what is in the selection.
- Everything outside the bounding box must remain unchanged.

{_SAFETY_EDIT}

Output: Return ONLY the final edited image. Do not return text."""


def filter_prompt(user_prompt: str, masked: bool) -> str:
    if masked:
        intro = "You are an expert photo editor AI. " + _MASK_PREAMBLE.format(kind="stylistic filter")
    else:
        intro = (
            "You are an expert photo editor AI. Apply a stylistic filter to the entire image. "
            "Do not change the composition or content, only the style."
        )
    return f"""{intro}
Filter Request: "{user_prompt}"

{_SAFETY_FILTER}

Output: Return ONLY the final filtered image. Do not return text."""


def adjustment_prompt(user_prompt: str, masked: bool) -> str:
    if masked:
        intro = "You are an expert photo editor AI. " + _MASK_PREAMBLE.format(kind="adjustment")
        guidelines = "- The result must be photorealistic."
    else:
        intro = (
            "You are an expert photo editor AI. Perform a natural, global adjustment to the "
            "entire image."
        )
        guidelines = "- Apply the adjustment across the entire image.\n- The result must be photorealistic."
    return f"""{intro}
User Request: "{user_prompt}"

Editing Guidelines:
{guidelines}

{_SAFETY_EDIT}

Output: Return ONLY the final adjusted image. Do not return text."""


def expansion_prompt(width: int, height: int) -> str:
    return f"""You are an expert in photorealistic outpainting. The image has transparent areas around a central photo. Fill ONLY the transparent areas.

Guidelines:
- Extend the scene naturally and believably.
- Match the style, lighting, color grading and perspective of the existing content.
- The boundary between original and generated content must be invisible.
- Do not modify any pixel of the original, non-transparent content.
- The output must be {width}x{height} pixels.

Output: Return ONLY the final, fully filled-in image. Do not return text."""
