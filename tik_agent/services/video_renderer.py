"""
Video generation strategies behind one interface:
- CreatomateRenderer: template render (product image + hook/CTA text + script subtitles)
- HuggingFaceVideoGenerator: text-to-video model with a per-user token, output stored locally
- PlaceholderVideoGenerator: static asset, never fails
"""
import logging
import time
from dataclasses import dataclass

import httpx

from tik_agent.config import Settings, get_settings
from tik_agent.services.media_storage import save_media

logger = logging.getLogger(__name__)

# Quality tier -> diffusion steps
INFERENCE_STEPS = {"fast": 25, "balanced": 50, "high": 80}
GUIDANCE_SCALE = 7.5

POLL_INTERVAL_SECONDS = 2.0


class RenderError(Exception):
    """Rendering could not start or the rendering service returned an error."""


@dataclass(frozen=True)
class RenderRequest:
    script: str
    hook: str = ""
    cta: str = ""
    image: str | None = None
    product_name: str = ""
    duration: int = 8
    quality: str = "balanced"


class VideoRenderer:
    name = "base"

    def render(self, request: RenderRequest) -> str:
        """Return the URL of the rendered video."""
        raise NotImplementedError


class CreatomateRenderer(VideoRenderer):
    """
    Renders are asynchronous: the POST answers with status planned/rendering and the
    URL only holds a file once the render reaches succeeded. render() polls until then.
    """
    name = "creatomate"

    def __init__(self, api_key: str, template_id: str, api_url: str, timeout: float = 300.0,
                 client: httpx.Client | None = None, poll_interval: float = POLL_INTERVAL_SECONDS):
        self.api_key = api_key
        self.template_id = template_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._client = client

    def build_payload(self, request: RenderRequest) -> dict:
        return {
            "template_id": self.template_id,
            "modifications": {
                "product_image": request.image,
                "hook_text": request.hook,
                "cta_text": request.cta,
                "subtitles.text": request.script,
            },
            "output_format": "mp4",
        }

    def render(self, request: RenderRequest) -> str:
        if not request.image:
            raise RenderError("No product images found")
        if not self.api_key:
            raise RenderError("Creatomate API key is not configured")
        if not self.template_id:
            raise RenderError("Creatomate template id is not configured")

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.api_url, json=self.build_payload(request), headers=self._headers())
            renders = self._json(response)
            if isinstance(renders, dict):
                renders = [renders]
            if not renders:
                raise RenderError("Creatomate returned no render")
            return self._wait(client, renders[0])
        except httpx.HTTPError as e:
            raise RenderError(f"Creatomate render failed: {e}") from e
        finally:
            if self._client is None:
                client.close()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _json(self, response: httpx.Response):
        if response.status_code >= 400:
            raise RenderError(f"Creatomate render failed: {response.status_code} {response.text[:500]}")
        return response.json()

    def _wait(self, client: httpx.Client, render: dict) -> str:
        deadline = time.monotonic() + self.timeout
        while True:
            status = render.get("status")
            if status == "succeeded":
                if not render.get("url"):
                    raise RenderError("Creatomate render succeeded without a url")
                return render["url"]
            if status == "failed":
                raise RenderError(f"Creatomate render failed: {render.get('error_message') or 'unknown error'}")
            if time.monotonic() >= deadline:
                raise RenderError(f"Creatomate render {render.get('id')} timed out after {self.timeout:.0f}s")
            if not render.get("id"):
                raise RenderError("Creatomate returned a render without an id")
            time.sleep(self.poll_interval)
            logger.debug("Polling Creatomate render %s (status %s)", render["id"], status)
            render = self._json(client.get(f"{self.api_url}/{render['id']}", headers=self._headers()))


def build_video_prompt(script: str, product_name: str, duration: int) -> str:
    return (
        f"Create a {duration}-second UGC (User Generated Content) TikTok video for the product \"{product_name}\".\n\n"
        f"Script/Narration: {script}\n\n"
        "Requirements:\n"
        "- Casual, authentic TikTok aesthetic with fast cuts\n"
        "- Product shots and lifestyle footage\n"
        "- Vertical 9:16 aspect ratio"
    )


class HuggingFaceVideoGenerator(VideoRenderer):
    name = "huggingface"

    def __init__(self, token: str, model: str, api_base: str, timeout: float = 300.0,
                 client: httpx.Client | None = None):
        self.token = token
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    def render(self, request: RenderRequest) -> str:
        if not self.token:
            raise RenderError("Hugging Face token is not configured")
        prompt = build_video_prompt(request.script, request.product_name, request.duration)
        logger.info("Generating video for %r with %s", request.product_name, self.model)

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(
                f"{self.api_base}/models/{self.model}",
                json={
                    "inputs": prompt,
                    "parameters": {
                        "num_inference_steps": INFERENCE_STEPS.get(request.quality, INFERENCE_STEPS["balanced"]),
                        "guidance_scale": GUIDANCE_SCALE,
                    },
                },
                headers={"Authorization": f"Bearer {self.token}"},
            )
        except httpx.HTTPError as e:
            raise RenderError(f"Video generation failed: {e}") from e
        finally:
            if self._client is None:
                client.close()

        if response.status_code == 429:
            raise RenderError("Rate limited by Hugging Face. Please try again in a few moments.")
        if response.status_code == 401:
            raise RenderError("Invalid Hugging Face API token")
        if response.status_code >= 400:
            raise RenderError(f"Video generation failed: {response.status_code} {response.text[:500]}")
        content_type = response.headers.get("content-type", "video/mp4")
        if not content_type.startswith("video/"):
            raise RenderError(f"Video generation returned {content_type}, expected video")
        return save_media("videos", response.content, content_type, prefix="ugc_")


class PlaceholderVideoGenerator(VideoRenderer):
    name = "placeholder"

    def __init__(self, url: str):
        self.url = url

    def render(self, request: RenderRequest) -> str:
        return self.url


def get_renderer(settings: Settings | None = None, hf_token: str | None = None) -> VideoRenderer:
    """Renderer for the interactive path, chosen by settings.video_renderer."""
    settings = settings or get_settings()
    if settings.video_renderer == "huggingface":
        return HuggingFaceVideoGenerator(
            hf_token or settings.hf_token, settings.hf_video_model, settings.hf_api_base,
            timeout=settings.render_timeout_seconds,
        )
    if settings.video_renderer == "placeholder":
        return PlaceholderVideoGenerator(settings.placeholder_video_url)
    return CreatomateRenderer(
        settings.creatomate_api_key, settings.creatomate_template_id, settings.creatomate_api_url,
        timeout=settings.render_timeout_seconds,
    )
