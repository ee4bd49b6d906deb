# core/gemini_client.py
import base64
import json
import logging
from typing import Any, Dict, Optional, Protocol
import httpx
from fastapi import status
from config.settings import settings
from core.entities import GenerationRequest, GenerationResult
from util.constants import ExternalURIs
from util.enums import TaskKind
from util.errors import MalformedResponse, QuotaOrAuthFailure, TransportFailure
from util.functions import strip_code_fences
from util.timing import timed

logger = logging.getLogger(__name__)

_QUOTA_OR_AUTH = {
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN,
    status.HTTP_429_TOO_MANY_REQUESTS,
}


class GenerationGateway(Protocol):
    async def invoke(self, request: GenerationRequest) -> GenerationResult: ...


def _build_payload(request: GenerationRequest, temperature: float) -> Dict[str, Any]:
    """
    Build the generateContent body: image parts first, then the prompt.
    """
    parts: list[dict] = [
        {
            "inline_data": {
                "mime_type": img.mime_type,
                "data": base64.b64encode(img.data).decode("ascii"),
            }
        }
        for img in request.images
    ]
    parts.append({"text": request.prompt})
    generation_config: Dict[str, Any] = {"temperature": temperature}
    if request.task_kind == TaskKind.STRUCTURED:
        generation_config["responseMimeType"] = "application/json"
    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": generation_config,
    }


def _candidate_text(envelope: Any) -> str:
    """
    Concatenate the text parts of the first candidate. Raises MalformedResponse when absent.
    """
    if not isinstance(envelope, dict):
        raise MalformedResponse("envelope is not an object")
    candidates = envelope.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        reason = (envelope.get("promptFeedback") or {}).get("blockReason")
        raise MalformedResponse(f"no candidates block_reason={reason}")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        str(p.get("text") or "") for p in parts if isinstance(p, dict)
    )


def parse_structured(raw: str) -> Any:
    cleaned = strip_code_fences(raw)
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        raise MalformedResponse(f"json parse failed at pos={getattr(e, 'pos', '?')}") from e


class GeminiGateway:
    """
    Thin async wrapper over the Gemini generateContent REST endpoint.
    One call per invoke, no retries; every failure is a typed GatewayError.
    """

    def __init__(
        self,
        *,
        api_key: str = settings.GEMINI_API_KEY,
        model: str = settings.GEMINI_MODEL,
        api_url: str = settings.GEMINI_API_URL,
        timeout: float = settings.GEMINI_TIMEOUT_SECONDS,
        temperature: float = settings.GEMINI_TEMPERATURE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = ExternalURIs.GENERATE_CONTENT.format(
            base=api_url.rstrip("/"), model=model
        )
        self._timeout = timeout
        self._temperature = temperature
        self._transport = transport

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"x-goog-api-key": self._api_key, "content-type": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.post(self._url, headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.warning("gateway.request_error err=%s", type(e).__name__)
            raise TransportFailure(type(e).__name__) from e

    async def invoke(self, request: GenerationRequest) -> GenerationResult:
        payload = _build_payload(request, self._temperature)
        with timed(
            logger,
            "gateway.invoke",
            kind=request.task_kind.value,
            images=len(request.images),
            model=self._model,
        ):
            res = await self._post(payload)

        if res.status_code in _QUOTA_OR_AUTH:
            logger.warning("gateway.rejected status=%d", res.status_code)
            raise QuotaOrAuthFailure(f"status={res.status_code}", res.status_code)
        if res.status_code // 100 != 2:
            logger.error("gateway.bad_status status=%d", res.status_code)
            raise TransportFailure(f"status={res.status_code}", res.status_code)

        try:
            envelope = res.json()
        except ValueError as e:
            raise MalformedResponse("envelope is not JSON") from e

        text = _candidate_text(envelope)
        if request.task_kind == TaskKind.FREEFORM:
            return GenerationResult(text=text.strip())

        data = parse_structured(text)
        logger.info("gateway.structured type=%s", type(data).__name__)
        return GenerationResult(text=text, data=data)
