"""OpenAI client for structured food extraction and transcription."""

import json
from dataclasses import dataclass

from openai import APITimeoutError, AsyncOpenAI

from nutrition_diary.errors import ExtractionTimeoutError, MalformedExtractionError
from nutrition_diary.services.extraction import ExtractionClient


@dataclass
class OpenAIExtractionClient(ExtractionClient):
    """Extraction client backed by the OpenAI Responses and Audio APIs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIExtractionClient":
        """Create an OpenAI extraction client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        text: str | None,
        image_data_url: str | None,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if text:
            content.append({"type": "input_text", "text": f"Meal: {text}"})
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})

        try:
            response = await self.client.responses.create(
                model=model,
                input=[{"role": "user", "content": content}],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": "food_extract",
                        "strict": True,
                        "schema": schema,
                    }
                },
                store=store,
            )
        except APITimeoutError as exc:
            raise ExtractionTimeoutError("OpenAI request timed out") from exc
        output_text = response.output_text
        if not output_text:
            raise MalformedExtractionError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def transcribe(self, *, model: str, audio: bytes, filename: str) -> str:
        """Transcribe audio with the OpenAI transcription endpoint."""
        try:
            transcription = await self.client.audio.transcriptions.create(
                model=model, file=(filename, audio)
            )
        except APITimeoutError as exc:
            raise ExtractionTimeoutError("OpenAI transcription timed out") from exc
        return transcription.text

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
