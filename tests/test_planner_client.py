"""Tests for the planner HTTP client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from phonepilot.errors import (
    ConfigurationError,
    EmptyResponseError,
    MalformedResponseError,
    PlannerRequestError,
)
from phonepilot.planner.client import PlannerClient
from phonepilot.planner.prompts import ChatMessage

MESSAGES = [ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="go home")]


def _completion(content: str | None = '{"actions": []}', **extra) -> dict:
    body = {
        "id": "chatcmpl-1",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
    }
    body.update(extra)
    return body


def _mock_http(mock_client_class, body=None):
    mock_response = MagicMock()
    mock_response.raise_for_status = MagicMock()
    mock_response.json.return_value = body if body is not None else _completion()
    mock_client = MagicMock()
    mock_client.post.return_value = mock_response
    mock_client_class.return_value.__enter__.return_value = mock_client
    return mock_client, mock_response


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_sends_request_and_returns_content(mock_client_class):
    mock_client, _ = _mock_http(mock_client_class, _completion('{"thinking": "t", "actions": []}'))

    client = PlannerClient()
    text = client.plan("gsk-test", "llama-3.3-70b-versatile", MESSAGES)

    assert text == '{"thinking": "t", "actions": []}'
    mock_client.post.assert_called_once()
    url = mock_client.post.call_args[0][0]
    kwargs = mock_client.post.call_args.kwargs
    assert url == "https://api.groq.com/openai/v1/chat/completions"
    assert kwargs["headers"] == {"Authorization": "Bearer gsk-test"}
    body = kwargs["json"]
    assert body["model"] == "llama-3.3-70b-versatile"
    assert body["temperature"] == 0.1
    assert body["max_tokens"] == 2048
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "go home"},
    ]


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_uses_configured_endpoint_and_timeout(mock_client_class):
    mock_client, _ = _mock_http(mock_client_class)

    client = PlannerClient(base_url="http://localhost:8080", timeout_seconds=5.0, max_tokens=512)
    client.plan("key", "m", MESSAGES)

    assert mock_client.post.call_args[0][0] == "http://localhost:8080/openai/v1/chat/completions"
    assert mock_client.post.call_args.kwargs["json"]["max_tokens"] == 512
    timeout = mock_client_class.call_args.kwargs["timeout"]
    assert timeout.read == 5.0


@pytest.mark.parametrize("api_key", ["", "   "])
@patch("phonepilot.planner.client.httpx.Client")
def test_plan_blank_key_raises_before_network(mock_client_class, api_key):
    with pytest.raises(ConfigurationError):
        PlannerClient().plan(api_key, "m", MESSAGES)
    mock_client_class.assert_not_called()


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_no_choices_raises_empty_response(mock_client_class):
    _mock_http(mock_client_class, {"id": "x", "choices": []})
    with pytest.raises(EmptyResponseError):
        PlannerClient().plan("key", "m", MESSAGES)


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_null_content_raises_empty_response(mock_client_class):
    _mock_http(mock_client_class, _completion(content=None))
    with pytest.raises(EmptyResponseError):
        PlannerClient().plan("key", "m", MESSAGES)


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_http_error_raises_request_error(mock_client_class):
    _, mock_response = _mock_http(mock_client_class)
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "Unauthorized", request=MagicMock(), response=MagicMock(status_code=401)
    )
    with pytest.raises(PlannerRequestError, match="401"):
        PlannerClient().plan("bad-key", "m", MESSAGES)


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_transport_error_raises_request_error_without_retry(mock_client_class):
    mock_client, _ = _mock_http(mock_client_class)
    mock_client.post.side_effect = httpx.ConnectError("connection refused")
    with pytest.raises(PlannerRequestError):
        PlannerClient().plan("key", "m", MESSAGES)
    assert mock_client.post.call_count == 1


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_non_json_body_raises_malformed(mock_client_class):
    _, mock_response = _mock_http(mock_client_class)
    mock_response.json.side_effect = ValueError("not json")
    with pytest.raises(MalformedResponseError):
        PlannerClient().plan("key", "m", MESSAGES)


@patch("phonepilot.planner.client.httpx.Client")
def test_plan_unexpected_shape_raises_malformed(mock_client_class):
    _mock_http(mock_client_class, {"id": "x", "choices": "nope"})
    with pytest.raises(MalformedResponseError):
        PlannerClient().plan("key", "m", MESSAGES)
