"""
Cosmetic images for the table: dealer backgrounds and end-of-game splashes.

Images come from an OpenAI-compatible image endpoint when enabled. Whenever
generation is disabled or fails, placeholder URLs are returned instead, so the
game never waits on artwork.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

PLACEHOLDER_BACKGROUND = "https://picsum.photos/1920/1080?blur=5"
PLACEHOLDER_SPLASH = {
    "game_over": "https://picsum.photos/1920/1080?blur=10",
    "victory": "https://picsum.photos/1920/1080",
}

_SCENE = (
    "Seen from the player's seat across a green felt poker table, waist-up and centred, "
    "casino lights behind. Illustrated, detailed, cinematic lighting."
)
BACKGROUND_PROMPTS = (
    f"A calm poker dealer with silver hair in a dark blue waistcoat shuffling cards. {_SCENE}",
    f"A smiling poker dealer with short red hair in a black waistcoat stacking chips. {_SCENE}",
    f"A poised poker dealer with a blonde braid in a white waistcoat dealing a flop. {_SCENE}",
)
SPLASH_PROMPTS = {
    "game_over": (
        "Cartoon splash art of a broke poker player with empty pockets turned out, "
        "slumped over an empty table, big 'GAME OVER' lettering. Exaggerated, colourful."
    ),
    "victory": (
        "Celebration splash art of a poker player behind a towering stack of chips while "
        "the dealers applaud, confetti falling, big 'YOU WIN!' lettering. Vibrant, detailed."
    ),
}


class ImageProvider:
    def __init__(
        self,
        enabled: bool = False,
        client: Any = None,
        model: Optional[str] = None,
        size: str = "1792x1024",
    ) -> None:
        self.model = model or os.getenv("OPENAI_IMAGE_MODEL") or "dall-e-3"
        self.size = size
        self.client = client
        if enabled and client is None:
            key = os.getenv("OPENAI_API_KEY")
            if key:
                self.client = AsyncOpenAI(api_key=key, base_url=os.getenv("OPENAI_API_BASE") or None)
            else:
                logger.warning("Image generation enabled but OPENAI_API_KEY is not set; using placeholders")
        self.enabled = enabled and self.client is not None
        self._cache: Dict[str, List[str]] = {}

    async def table_backgrounds(self) -> List[str]:
        if "backgrounds" not in self._cache:
            if not self.enabled:
                return [PLACEHOLDER_BACKGROUND for _ in BACKGROUND_PROMPTS]
            results = await asyncio.gather(*(self._generate(p) for p in BACKGROUND_PROMPTS))
            urls = [url for url in results if url]
            if not urls:
                return [PLACEHOLDER_BACKGROUND for _ in BACKGROUND_PROMPTS]
            self._cache["backgrounds"] = urls
        return list(self._cache["backgrounds"])

    async def splash(self, kind: str) -> str:
        if kind not in SPLASH_PROMPTS:
            raise ValueError(f"Unknown splash {kind!r}")
        return await self._splash(kind)

    async def _splash(self, kind: str) -> str:
        if kind in self._cache:
            return self._cache[kind][0]
        if not self.enabled:
            return PLACEHOLDER_SPLASH[kind]
        url = await self._generate(SPLASH_PROMPTS[kind])
        if url is None:
            return PLACEHOLDER_SPLASH[kind]
        self._cache[kind] = [url]
        return url

    async def _generate(self, prompt: str) -> Optional[str]:
        try:
            response = await self.client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=self.size,
                response_format="b64_json",
            )
        except Exception as exc:
            logger.warning("Image generation failed: %s", exc)
            return None
        data = getattr(response, "data", None) or []
        if not data or not getattr(data[0], "b64_json", None):
            return None
        return f"data:image/png;base64,{data[0].b64_json}"
