"""Media generation capability used by the ``generate_image`` and ``generate_video`` tools."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel

from content_agent.agent_core import ToolExecutionError, get_logger

logger = get_logger(__name__)


class GeneratedMedia(BaseModel):
    """Raw output of a media generator.

    Attributes:
        url: Where the generated asset lives. May be a ``data:`` URI.
        mime_type: MIME type of the asset.
        revised_prompt: Prompt actually used by the provider, if it rewrote it.
    """

    url: str
    mime_type: str = "image/png"
    revised_prompt: Optional[str] = None


class MediaGenerator(ABC):
    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> GeneratedMedia: ...

    @abstractmethod
    async def generate_video(
        self,
        prompt: str,
        model: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> GeneratedMedia: ...


class OpenAIMediaGenerator(MediaGenerator):
    """Generates images through the OpenAI images API. Video generation is not offered."""

    def __init__(self, client: AsyncOpenAI, default_model: str = "dall-e-3") -> None:
        self.client = client
        self.default_model = default_model

    async def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> GeneratedMedia:
        kwargs: Dict[str, Any] = {"model": model or self.default_model, "prompt": prompt, "n": 1}
        if size:
            kwargs["size"] = size
        if quality:
            kwargs["quality"] = quality

        logger.info(f"Generating image with model '{kwargs['model']}'.")
        response = await self.client.images.generate(**kwargs)
        if not response.data:
            raise ToolExecutionError("Image generation returned no data.")

        image = response.data[0]
        if image.url:
            url = image.url
        elif image.b64_json:
            url = f"data:image/png;base64,{image.b64_json}"
        else:
            raise ToolExecutionError("Image generation returned neither a URL nor image data.")
        return GeneratedMedia(url=url, mime_type="image/png", revised_prompt=image.revised_prompt)

    async def generate_video(
        self,
        prompt: str,
        model: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> GeneratedMedia:
        raise ToolExecutionError("Video generation is not supported by the OpenAI media generator.")
