import base64
import json

import httpx
import pytest

from core.entities import GenerationRequest, ImagePayload
from core.gemini_client import GeminiGateway
from util.enums import TaskKind
from util.errors import MalformedResponse, QuotaOrAuthFailure, TransportFailure


def envelope(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


def make_gateway(handler, seen=None):
    def _record(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return GeminiGateway(
        api_key="k",
        model="gemini-test",
        api_url="https://example.test/v1beta/models/",
        timeout=5,
        temperature=0.4,
        transport=httpx.MockTransport(_record),
    )


STRUCTURED = GenerationRequest(task_kind=TaskKind.STRUCTURED, prompt="give json")
FREEFORM = GenerationRequest(task_kind=TaskKind.FREEFORM, prompt="give text")


async def test_structured_call_sends_images_and_json_mime_type():
    seen = []
    gw = make_gateway(lambda r: httpx.Response(200, json=envelope('{"a": 1}')), seen)
    req = GenerationRequest(
        task_kind=TaskKind.STRUCTURED,
        prompt="extract",
        images=(ImagePayload(data=b"img", mime_type="image/png"),),
    )

    res = await gw.invoke(req)

    assert res.data == {"a": 1}
    sent = seen[0]
    assert str(sent.url) == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert sent.headers["x-goog-api-key"] == "k"
    body = json.loads(sent.content)
    parts = body["contents"][0]["parts"]
    assert parts[0]["inline_data"] == {
        "mime_type": "image/png",
        "data": base64.b64encode(b"img").decode("ascii"),
    }
    assert parts[-1] == {"text": "extract"}
    assert body["generationConfig"]["responseMimeType"] == "application/json"


async def test_freeform_call_returns_joined_text_without_json_mode():
    seen = []
    gw = make_gateway(lambda r: httpx.Response(200, json=envelope("Hello ", "world\n")), seen)

    res = await gw.invoke(FREEFORM)

    assert res.text == "Hello world"
    assert res.data is None
    assert "responseMimeType" not in json.loads(seen[0].content)["generationConfig"]


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"layer1": "x"}\n```',
        '```\n{"layer1": "x"}\n```',
        'Sure! Here it is: {"layer1": "x"} Hope that helps.',
    ],
)
async def test_fenced_or_chatty_json_is_unwrapped(raw):
    gw = make_gateway(lambda r: httpx.Response(200, json=envelope(raw)))
    assert (await gw.invoke(STRUCTURED)).data == {"layer1": "x"}


@pytest.mark.parametrize("code", [401, 403, 429])
async def test_quota_and_auth_statuses(code):
    gw = make_gateway(lambda r: httpx.Response(code, json={"error": {}}))
    with pytest.raises(QuotaOrAuthFailure) as exc:
        await gw.invoke(STRUCTURED)
    assert exc.value.status_code == code


@pytest.mark.parametrize("code", [400, 500, 503])
async def test_other_error_statuses_are_transport_failures(code):
    gw = make_gateway(lambda r: httpx.Response(code, text="nope"))
    with pytest.raises(TransportFailure) as exc:
        await gw.invoke(FREEFORM)
    assert exc.value.status_code == code


async def test_network_error_is_transport_failure():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    gw = make_gateway(boom)
    with pytest.raises(TransportFailure):
        await gw.invoke(STRUCTURED)


async def test_unparseable_json_is_malformed():
    gw = make_gateway(lambda r: httpx.Response(200, json=envelope("not json at all")))
    with pytest.raises(MalformedResponse):
        await gw.invoke(STRUCTURED)


async def test_missing_candidates_is_malformed():
    gw = make_gateway(
        lambda r: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
    )
    with pytest.raises(MalformedResponse):
        await gw.invoke(FREEFORM)


async def test_non_json_envelope_is_malformed():
    gw = make_gateway(lambda r: httpx.Response(200, text="<html>"))
    with pytest.raises(MalformedResponse):
        await gw.invoke(FREEFORM)
