from dataclasses import dataclass

import pytest

from llmgateway.correlation import RequestContext
from llmgateway.ingress.errors import IngressError, IngressErrorKind
from llmgateway.ingress.service import (
    AIResponse,
    IngressRequest,
    IngressResponse,
    IngressService,
)


@dataclass
class FakeResult:
    content: str
    model_used: str
    prompt_tokens: int
    completion_tokens: int
    total_cost: float
    finish_reason: str


class UnsupportedModel(Exception):
    pass


class FakeExecutor:
    def __init__(self, models):
        self.models = set(models)
        self.payloads = []

    async def execute(self, plan, payload):
        if plan.model_id not in self.models:
            raise UnsupportedModel(plan.vendor_id, plan.model_id)
        self.payloads.append(payload)
        return FakeResult("Mock ingress response", plan.model_id, 15, 25, 0.001, "stop")


@pytest.mark.asyncio
async def test_process_request_success_returns_expected_response_shape():
    service = IngressService(FakeExecutor(["gpt-4"]))
    context = RequestContext("req-ingress-1", "client-1")
    result = await service.process_request(
        IngressRequest(prompt="Hello ingress", metadata={"rewrite": False}),
        "user-123",
        context,
    )
    assert result.response.role == "assistant"
    assert result.response.content == "Mock ingress response"
    assert result.response.finish_reason == "stop"
    assert result.model_used == "gpt-4"
    assert result.cost == 0.001
    assert result.processing_time_ms < 5000


@pytest.mark.asyncio
async def test_process_request_returns_execution_failed_for_unsupported_model():
    service = IngressService(FakeExecutor(["gpt-3.5-turbo"]))
    context = RequestContext("req-ingress-2")
    with pytest.raises(IngressError) as info:
        await service.process_request(
            IngressRequest(prompt="Trigger unsupported model", metadata={}),
            "user-456",
            context,
        )
    assert info.value.kind is IngressErrorKind.EXECUTION_FAILED
    assert isinstance(info.value.cause, UnsupportedModel)
    assert info.value.cause.args == ("openai", "gpt-4")


@pytest.mark.asyncio
async def test_process_request_sends_normalized_payload():
    executor = FakeExecutor(["gpt-4"])
    service = IngressService(executor)
    await service.process_request(
        IngressRequest(prompt="Hi", metadata={"k": 1}), "u", RequestContext("r")
    )
    assert executor.payloads == [
        {"messages": [{"role": "user", "content": "Hi"}], "metadata": {"k": 1}}
    ]


@pytest.mark.asyncio
async def test_process_request_invalidates_user_context_cache():
    service = IngressService(FakeExecutor(["gpt-4"]))
    await service.process_request(
        IngressRequest(prompt="Hi", metadata={}), "user-x", RequestContext("r")
    )
    assert "user-x" not in service.repository.cached_user_ids()


def test_slow_threshold_defaults(monkeypatch):
    monkeypatch.delenv("INGRESS_SLOW_REQUEST_THRESHOLD_MS", raising=False)
    assert IngressService(FakeExecutor([])).slow_request_threshold_ms == 1000


def test_slow_threshold_from_env(monkeypatch):
    monkeypatch.setenv("INGRESS_SLOW_REQUEST_THRESHOLD_MS", "250")
    assert IngressService(FakeExecutor([])).slow_request_threshold_ms == 250


def test_slow_threshold_invalid_env_falls_back(monkeypatch):
    monkeypatch.setenv("INGRESS_SLOW_REQUEST_THRESHOLD_MS", "abc")
    assert IngressService(FakeExecutor([])).slow_request_threshold_ms == 1000


def test_ingress_request_from_dict():
    request = IngressRequest.from_dict({"prompt": "Hello", "metadata": {}, "extra": 1})
    assert request.prompt == "Hello"
    assert request.metadata == {}


def test_ingress_request_requires_metadata():
    with pytest.raises(ValueError):
        IngressRequest.from_dict({"prompt": "Hello"})


def test_ingress_request_requires_string_prompt():
    with pytest.raises(TypeError):
        IngressRequest.from_dict({"prompt": 5, "metadata": {}})


def test_ingress_request_requires_object():
    with pytest.raises(TypeError):
        IngressRequest.from_dict(["prompt"])


def test_ingress_response_to_dict():
    response = IngressResponse(
        response=AIResponse(content="c", role="assistant", finish_reason=None),
        model_used="gpt-4",
        cost=0.5,
        processing_time_ms=3,
    )
    assert response.to_dict() == {
        "response": {"content": "c", "role": "assistant", "finish_reason": None},
        "model_used": "gpt-4",
        "cost": 0.5,
        "processing_time_ms": 3,
    }