"""Prompt framing for edits and the jewelry placement catalog."""

from dataclasses import dataclass
from enum import StrEnum


class EditKind(StrEnum):
    """Kind of primary edit, which decides how the prompt is framed."""

    FILTER = "filter"
    ADJUSTMENT = "adjustment"
    GENERATE = "generate"


class Gender(StrEnum):
    FEMALE = "female"
    MALE = "male"


@dataclass(frozen=True)
class JewelryType:
    """A placement template; ``{style}`` and gender placeholders are filled in."""

    name: str
    template: str
    needs_collection: bool = True


_STUDIO_SETTING = (
    "The setting should be a professional, photorealistic studio shot "
    "with a light cream background."
)

JEWELRY_TYPES: dict[str, JewelryType] = {
    jewelry.name.lower(): jewelry
    for jewelry in (
        JewelryType(
            name="Ring",
            template=(
                "As a creative assistant for {brand}, place this ring on a "
                "{possessive} gracefully posed hand. {style} "
                f"{_STUDIO_SETTING} Ensure the ring fits perfectly and looks "
                "natural. The final image should be a tight, elegant crop "
                "focusing on the hand and jewelry, with no face visible."
            ),
            needs_collection=False,
        ),
        JewelryType(
            name="Bangle",
            template=(
                "As a creative assistant for {brand}, place this bangle on a "
                "{possessive} gracefully posed wrist. {style} "
                f"{_STUDIO_SETTING} Ensure the bangle fits perfectly and drapes "
                "naturally. The final image should be a tight, elegant crop "
                "focusing on the hand and wrist, with no face visible."
            ),
        ),
        JewelryType(
            name="Necklace",
            template=(
                "As a creative assistant for {brand}, place this necklace on a "
                "{possessive} neck, resting naturally against the collarbone. "
                "If the original image also includes matching earrings, place "
                "them on {objective} ears as well. {style} "
                f"{_STUDIO_SETTING} The final image should be a tight crop on "
                "the neck and jawline, with no face visible, to keep the focus "
                "on the jewelry."
            ),
        ),
        JewelryType(
            name="Bracelet",
            template=(
                "As a creative assistant for {brand}, place this bracelet on a "
                "{possessive} gracefully posed wrist. {style} "
                f"{_STUDIO_SETTING} Ensure the bracelet fits perfectly and "
                "drapes naturally. The final image should be a tight, elegant "
                "crop focusing on the hand and wrist, with no face visible."
            ),
        ),
        JewelryType(
            name="Chain",
            template=(
                "As a creative assistant for {brand}, place this chain on a "
                "{possessive} neck, ensuring it drapes naturally to its full, "
                f"elegant length. {{style}} {_STUDIO_SETTING} Use expert studio "
                "lighting to accentuate the chain's intricate details, texture, "
                "and metallic shine, with a crisp separation between the "
                "jewelry and the model's skin. The final image should be a "
                "medium shot cropped from just below the chin to the mid-chest "
                "area. No face should be visible."
            ),
        ),
        JewelryType(
            name="Pendant",
            template=(
                "As a creative assistant for {brand}, place this pendant (on its "
                "chain) on a {possessive} neck, resting naturally against the "
                f"collarbone. {{style}} {_STUDIO_SETTING} The final image should "
                "be a tight crop on the neck and jawline, with no face visible, "
                "to keep the focus on the jewelry."
            ),
        ),
    )
}

COLLECTIONS: dict[str, str] = {
    "premium": (
        "The scene is a high-end luxury photoshoot. Use expert studio lighting "
        "to accentuate the jewelry's premium finish and any stones. The model's "
        "pose should be sophisticated, reflecting a premium and elegant style."
    ),
    "sreshta": (
        "The model must be wearing an elegant and traditional Kerala saree, "
        "reflecting the temple jewelry style. The background and lighting "
        "should evoke a sense of heritage and classic beauty."
    ),
    "aria": (
        "The model must be wearing a simple, minimal, and modern outfit (like a "
        "plain silk blouse or a simple neckline dress). The aesthetic should be "
        "clean, fresh, and contemporary to complement the minimalist jewelry."
    ),
}


def build_placement_prompt(
    jewelry_type: str,
    gender: Gender = Gender.FEMALE,
    collection: str | None = None,
    brand: str = "Parakkat Jewels",
) -> str:
    """Assemble a product placement prompt from the catalog.

    Rings ignore the collection; every other type requires one.
    """
    jewelry = JEWELRY_TYPES.get(jewelry_type.strip().lower())
    if jewelry is None:
        raise ValueError(f"Unknown jewelry type: {jewelry_type}")
    style = ""
    if jewelry.needs_collection:
        if not collection:
            raise ValueError(f"A collection is required for {jewelry.name}")
        style = COLLECTIONS.get(collection.strip().lower(), "")
        if not style:
            raise ValueError(f"Unknown collection: {collection}")
    possessive, objective = (
        ("woman's", "her") if gender == Gender.FEMALE else ("man's", "his")
    )
    prompt = jewelry.template.format(
        brand=brand, possessive=possessive, objective=objective, style=style
    )
    return " ".join(prompt.split())


def frame_edit_prompt(kind: EditKind, prompt: str) -> str:
    """Wrap a user request in the instruction for its edit kind."""
    request = prompt.strip()
    if not request:
        raise ValueError("Prompt must not be empty")
    if kind == EditKind.FILTER:
        return (
            "Apply a stylistic filter to the entire image based on this request: "
            f"{request}. Do not change the composition or content, only apply "
            "the style. Return only the edited image."
        )
    if kind == EditKind.ADJUSTMENT:
        return (
            "Perform a natural, global adjustment to the entire image based on "
            f"this request: {request}. The result must be photorealistic. "
            "Return only the edited image."
        )
    return f"{request} Return only the generated image."


def describe_prompt() -> str:
    """Instruction for generating a product title and description."""
    return (
        "You are a copywriter for a jewelry store. Look at the product in the "
        "image and write a short, catchy product title and a one-paragraph "
        "product description suitable for an online listing."
    )
