import json
import logging
import re
from typing import Protocol

import anthropic
import httpx
from anthropic import AsyncAnthropic
from pydantic import BaseModel

from site_extraction.exceptions.custom import InferenceError, InferenceResponseError

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_JSON_RE = re.compile(r"\{[^{}]*\}")
_DATA_URL_RE = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<data>.+)$", re.S)


class InferenceRequest(BaseModel):
    model: str
    system_prompt: str
    user_prompt: str
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout: float | None = None
    image: str | None = None  # base64 PNG, data URL or http(s) URL


class InferenceResponse(BaseModel):
    data: dict
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class InferenceClient(Protocol):
    async def generate(self, request: InferenceRequest) -> InferenceResponse: ...


def _is_retryable_status(status_code: int) -> bool:
    return status_code in (408, 429) or status_code >= 500


def _as_data_url(image: str) -> str:
    if image.startswith(("data:", "http://", "https://")):
        return image
    return f"data:image/png;base64,{image}"


def parse_json_object(text: str) -> dict | None:
    """Best-effort extraction of a JSON object from model output."""
    # Strip markdown fences
    stripped = re.sub(r"```(?:json)?\s*", "", text).strip().rstrip("`")

    # Try direct parse
    try:
        obj = json.loads(stripped)
        if isinstance(obj, dict):
            return obj
    except (json.JSONDecodeError, ValueError):
        pass

    # Outermost braces, for answers wrapped in prose
    start, end = stripped.find("{"), stripped.rfind("}")
    if 0 <= start < end:
        try:
            obj = json.loads(stripped[start : end + 1])
            if isinstance(obj, dict):
                return obj
        except (json.JSONDecodeError, ValueError):
            pass

    # Fallback: find a flat JSON object in the text
    match = _JSON_RE.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except (json.JSONDecodeError, ValueError):
            pass

    return None


class OpenRouterClient:
    """OpenAI-compatible chat completions over a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = OPENROUTER_BASE_URL,
    ):
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def generate(self, request: InferenceRequest) -> InferenceResponse:
        try:
            resp = await self._client.post(
                f"{self._base_url}/chat/completions",
                json=self._build_payload(request),
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=request.timeout,
            )
        except httpx.TimeoutException as exc:
            raise InferenceError(f"OpenRouter request timed out: {exc!r}") from exc
        except httpx.HTTPError as exc:
            raise InferenceError(f"OpenRouter request failed: {exc!r}") from exc

        if resp.status_code >= 400:
            raise InferenceError(
                f"OpenRouter returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
                retryable=_is_retryable_status(resp.status_code),
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise InferenceResponseError("OpenRouter returned a non-JSON body") from exc
        return self._parse_response(body, request.model)

    @staticmethod
    def _build_payload(request: InferenceRequest) -> dict:
        if request.image:
            user_content: str | list[dict] = [
                {"type": "text", "text": request.user_prompt},
                {
                    "type": "image_url",
                    "image_url": {"url": _as_data_url(request.image), "detail": "high"},
                },
            ]
        else:
            user_content = request.user_prompt

        return {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "response_format": {"type": "json_object"},
        }

    @staticmethod
    def _parse_response(body: dict, model: str) -> InferenceResponse:
        # The gateway reports upstream provider failures inside a 200 body
        if error := body.get("error"):
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            status = code if isinstance(code, int) else None
            raise InferenceError(
                f"OpenRouter error: {message}",
                status_code=status,
                retryable=status is None or _is_retryable_status(status),
            )

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InferenceResponseError("Unexpected OpenRouter response structure") from exc

        parsed = parse_json_object(content or "")
        if parsed is None:
            raise InferenceResponseError("Could not parse JSON from OpenRouter response")

        usage = body.get("usage") or {}
        return InferenceResponse(
            data=parsed,
            model=body.get("model") or model,
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
        )


class AnthropicClient:
    def __init__(self, api_key: str):
        # Retries are owned by the phase extractor
        self._client = AsyncAnthropic(api_key=api_key, max_retries=0)

    async def generate(self, request: InferenceRequest) -> InferenceResponse:
        content: list[dict] = []
        if request.image:
            content.append({"type": "image", "source": self._image_source(request.image)})
        content.append({"type": "text", "text": request.user_prompt})

        kwargs = {}
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout

        try:
            response = await self._client.messages.create(
                model=request.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                system=request.system_prompt,
                messages=[{"role": "user", "content": content}],
                **kwargs,
            )
        except anthropic.APIConnectionError as exc:
            # Includes APITimeoutError
            raise InferenceError(f"Anthropic request failed: {exc!r}") from exc
        except anthropic.APIStatusError as exc:
            raise InferenceError(
                f"Anthropic returned {exc.status_code}: {exc.message}",
                status_code=exc.status_code,
                retryable=_is_retryable_status(exc.status_code),
            ) from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        parsed = parse_json_object(text)
        if parsed is None:
            raise InferenceResponseError("Could not parse JSON from Anthropic response")

        return InferenceResponse(
            data=parsed,
            model=request.model,
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
        )

    @staticmethod
    def _image_source(image: str) -> dict:
        if image.startswith(("http://", "https://")):
            return {"type": "url", "url": image}
        match = _DATA_URL_RE.match(image)
        if match:
            return {
                "type": "base64",
                "media_type": match.group("media_type"),
                "data": match.group("data"),
            }
        return {"type": "base64", "media_type": "image/png", "data": image}


def build_inference_client(
    provider: str,
    api_key: str,
    http_client: httpx.AsyncClient,
    base_url: str = OPENROUTER_BASE_URL,
) -> InferenceClient | None:
    """Client for the configured provider, or ``None`` when no key is set."""
    if not api_key:
        logger.info("No inference API key configured, extraction runs fallback-only")
        return None
    if provider == "anthropic":
        return AnthropicClient(api_key)
    if provider != "openrouter":
        raise ValueError(f"Unknown inference provider: {provider!r}")
    return OpenRouterClient(http_client, api_key, base_url)
