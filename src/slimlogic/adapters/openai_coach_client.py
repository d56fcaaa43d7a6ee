"""OpenAI-backed coach client."""

import base64
import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from slimlogic.domain.coach import ChatTurn
from slimlogic.services.coach import CoachClient, detect_mime_type

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@dataclass
class OpenAICoachClient(CoachClient):
    """Coach client backed by the OpenAI Responses and Images APIs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAICoachClient":
        """Create an OpenAI coach client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str | None,
        prompt: str,
        image_data_urls: list[str],
        schema_name: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Call the Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        for image_url in image_data_urls:
            content.append({"type": "input_image", "image_url": image_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if instructions:
            request_payload["instructions"] = instructions
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def reply(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str | None,
        prompt: str,
        history: list[ChatTurn],
    ) -> str:
        """Call the Responses API for a free-text answer."""
        messages: list[dict[str, object]] = [
            {"role": turn.role, "content": turn.text} for turn in history
        ]
        messages.append({"role": "user", "content": prompt})
        request_payload: dict[str, object] = {
            "model": model,
            "input": messages,
            "store": store,
        }
        if instructions:
            request_payload["instructions"] = instructions
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        return response.output_text or ""

    async def generate_image(self, *, model: str, prompt: str) -> bytes:
        """Generate an image with the Images API."""
        response = await self.client.images.generate(model=model, prompt=prompt, n=1)
        return _first_image(response)

    async def edit_image(self, *, model: str, image: bytes, prompt: str) -> bytes:
        """Edit an image with the Images API."""
        mime_type = detect_mime_type(image)
        upload = (f"meal.{_EXTENSIONS[mime_type]}", image, mime_type)
        response = await self.client.images.edit(
            model=model, image=upload, prompt=prompt, n=1
        )
        return _first_image(response)


def _first_image(response: object) -> bytes:
    data = getattr(response, "data", None) or []
    for item in data:
        encoded = getattr(item, "b64_json", None)
        if encoded:
            return base64.b64decode(encoded)
    raise RuntimeError("OpenAI returned no image data")
