"""
UGC ad script and TikTok caption generation (one Gemini call each, no retry).
"""
import re
from dataclasses import dataclass

from tik_agent.services.llm_service import invoke_llm

SCRIPT_SYSTEM_INSTRUCTION = """You are a UGC (User Generated Content) video script writer for TikTok.
Create engaging, authentic scripts that feel like real people reviewing products.
Keep it short (30-60 seconds of spoken content), conversational, and enthusiastic.

Structure:
- First line: a one-sentence hook.
- Then 2-4 short benefit statements, one per line.
- Last line: a call-to-action.

Return only the script text, no headings or stage directions."""

CAPTION_SYSTEM_INSTRUCTION = """You are a TikTok caption and hashtag expert.
Create engaging captions with viral hashtags. Keep captions short, punchy, and include relevant emojis.
Generate 10-15 hashtags mixing popular and niche tags."""

DEFAULT_HOOK = "You need this"
DEFAULT_CTA = "Shop now"

HASHTAG_PATTERN = re.compile(r"#\w+")


@dataclass(frozen=True)
class ParsedScript:
    hook: str
    cta: str
    subtitles: str


def build_script_prompt(name: str, price: str | None, description: str | None) -> str:
    return (
        "Create a UGC-style TikTok video script for this product:\n\n"
        f"Name: {name}\n"
        f"Price: {price or 'N/A'}\n"
        f"Description: {description or ''}\n\n"
        "Make it sound natural and exciting!"
    )


def generate_script(name: str, price: str | None = None, description: str | None = None) -> str:
    """Returns the raw model text; hook/CTA boundaries are not validated here."""
    return invoke_llm(SCRIPT_SYSTEM_INSTRUCTION, build_script_prompt(name, price, description))


def parse_script(script: str) -> ParsedScript:
    """First non-empty line is the hook, last non-empty line the CTA."""
    lines = [line.strip() for line in (script or "").splitlines() if line.strip()]
    return ParsedScript(
        hook=lines[0] if lines else DEFAULT_HOOK,
        cta=lines[-1] if lines else DEFAULT_CTA,
        subtitles=script or "",
    )


def generate_caption(name: str, description: str | None = None) -> str:
    return invoke_llm(
        CAPTION_SYSTEM_INSTRUCTION,
        f"Create a TikTok caption and hashtags for this product: {name}\n\nDescription: {description or ''}",
    )


def extract_hashtags(caption: str) -> list[str]:
    """Hashtags in order of appearance, case-insensitively de-duplicated."""
    tags: list[str] = []
    seen: set[str] = set()
    for tag in HASHTAG_PATTERN.findall(caption or ""):
        if tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tags
