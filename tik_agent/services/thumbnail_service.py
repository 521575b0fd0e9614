"""TikTok cover image for a product, generated with the Gemini image model."""
from tik_agent.services.llm_service import generate_image_bytes
from tik_agent.services.media_storage import save_media


def build_thumbnail_prompt(product_name: str) -> str:
    return (
        f"Product thumbnail for {product_name}. Clean, professional, eye-catching. "
        "Show the product clearly with vibrant colors. TikTok cover image."
    )


def generate_thumbnail(product_name: str) -> str:
    """Returns the public URL of the stored image. Model errors propagate."""
    data, mime_type = generate_image_bytes(build_thumbnail_prompt(product_name))
    return save_media("thumbnails", data, mime_type, prefix="thumb_")
