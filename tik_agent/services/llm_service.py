"""
Gemini client shared by product extraction, script, caption and thumbnail generation.
Uses google-genai with Vertex AI when a project is configured, otherwise an API key.
"""
import logging
from pathlib import Path

from tik_agent.config import get_settings

logger = logging.getLogger(__name__)

# Lazy client to avoid import/credentials errors at import time
_gemini_client = None


class LLMError(RuntimeError):
    """The model call succeeded at transport level but produced no usable text."""


def _get_client():
    global _gemini_client
    if _gemini_client is not None:
        return _gemini_client
    try:
        from google import genai
        from google.oauth2 import service_account
    except ImportError as e:
        raise RuntimeError(
            "Google GenAI not installed. pip install google-genai google-auth"
        ) from e

    settings = get_settings()
    if settings.vertex_project_id:
        credentials = None
        if settings.vertex_credentials_path:
            path = Path(settings.vertex_credentials_path)
            if path.is_file():
                credentials = service_account.Credentials.from_service_account_file(
                    str(path),
                    scopes=["https://www.googleapis.com/auth/cloud-platform"],
                )
        _gemini_client = genai.Client(
            vertexai=True,
            project=settings.vertex_project_id,
            location=settings.vertex_location,
            credentials=credentials,
        )
    elif settings.gemini_api_key:
        _gemini_client = genai.Client(api_key=settings.gemini_api_key)
    else:
        raise RuntimeError("LLM is not configured (set vertex_project_id or gemini_api_key)")
    return _gemini_client


def invoke_llm(
    system_instruction: str,
    user_prompt: str,
    *,
    temperature: float = 0.7,
    max_output_tokens: int = 2048,
    json_output: bool = False,
) -> str:
    """
    Single-turn Gemini call. Returns the raw response text.
    Raises LLMError on an empty response; client/API errors propagate unchanged.
    """
    client = _get_client()
    settings = get_settings()
    from google.genai.types import GenerateContentConfig

    config = GenerateContentConfig(
        system_instruction=system_instruction,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type="application/json" if json_output else None,
    )
    response = client.models.generate_content(
        model=settings.gemini_model,
        contents=user_prompt,
        config=config,
    )

    if not response or not response.candidates:
        raise LLMError("Empty response from model")
    candidate = response.candidates[0]
    if not candidate.content or not candidate.content.parts:
        raise LLMError("No text in model response")
    return getattr(response, "text", None) or candidate.content.parts[0].text


def generate_image_bytes(prompt: str) -> tuple[bytes, str]:
    """Generate one image. Returns (bytes, mime_type)."""
    client = _get_client()
    settings = get_settings()
    from google.genai.types import GenerateImagesConfig

    response = client.models.generate_images(
        model=settings.image_model,
        prompt=prompt,
        config=GenerateImagesConfig(number_of_images=1, aspect_ratio="9:16"),
    )
    if not response or not response.generated_images:
        raise LLMError("Empty image response from model")
    image = response.generated_images[0].image
    if image is None or not image.image_bytes:
        raise LLMError("No image bytes in model response")
    return image.image_bytes, image.mime_type or "image/png"
