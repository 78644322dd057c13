"""
Model client tests. requests is patched; no network.
"""

from unittest.mock import Mock, patch

import pytest
import requests

import llm
from errors import ConfigurationError, ModelUnavailable, TransportError


def _response(payload, status=200):
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


GEMINI_OK = {"candidates": [{"content": {"parts": [{"text": '{"states": []}'}]}, "finishReason": "STOP"}]}


def test_missing_key_raises_configuration_error(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError) as exc:
        llm.ModelClient("gemini")
    assert str(exc.value) == "Gemini key missing"


def test_alternate_env_key_is_accepted(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    assert llm.ModelClient("gemini").api_key == "k"


@patch("llm.requests.post")
def test_complete_returns_text(post):
    post.return_value = _response(GEMINI_OK)
    client = llm.ModelClient("gemini", api_key="k", timeout=5)
    assert client.complete("prompt") == '{"states": []}'
    assert post.call_args.kwargs["timeout"] == 5
    assert post.call_args.kwargs["params"] == {"key": "k"}


@patch("llm.requests.post")
def test_timeout_is_model_unavailable(post):
    post.side_effect = requests.exceptions.Timeout("slow")
    client = llm.ModelClient("gemini", api_key="k")
    with pytest.raises(ModelUnavailable):
        client.complete("prompt")


@patch("llm.requests.post")
def test_http_error_is_transport_error(post):
    post.return_value = _response({}, status=500)
    with pytest.raises(TransportError):
        llm.ModelClient("gemini", api_key="k").complete("prompt")


@patch("llm.requests.post")
def test_odd_payload_is_transport_error(post):
    post.return_value = _response({"candidates": []})
    with pytest.raises(TransportError):
        llm.ModelClient("gemini", api_key="k").complete("prompt")


@patch("llm.time.sleep")
@patch("llm.requests.post")
def test_rate_limit_retries_when_configured(post, sleep):
    post.side_effect = [_response({}, status=429), _response(GEMINI_OK)]
    client = llm.ModelClient("gemini", api_key="k", attempts=2)
    assert client.complete("prompt") == '{"states": []}'
    assert post.call_count == 2
    sleep.assert_called_once()


@patch("llm.requests.post")
def test_rate_limit_not_retried_by_default(post):
    post.return_value = _response({}, status=429)
    with pytest.raises(TransportError):
        llm.ModelClient("gemini", api_key="k", attempts=1).complete("prompt")
    assert post.call_count == 1


@patch("llm.requests.post")
def test_health_check_swallows_errors(post):
    post.side_effect = requests.exceptions.ConnectionError("refused")
    assert llm.ModelClient("gemini", api_key="k").health_check() is False


@patch("llm.requests.post")
def test_health_check_needs_non_empty_reply(post):
    client = llm.ModelClient("gemini", api_key="k")
    post.return_value = _response({"candidates": [{"content": {"parts": [{"text": "  "}]}}]})
    assert client.health_check() is False
    post.return_value = _response({"candidates": [{"content": {"parts": [{"text": "Working"}]}}]})
    assert client.health_check() is True


@patch("llm.requests.post")
def test_openai_provider(post):
    post.return_value = _response({"choices": [{"message": {"content": "hi"}, "finish_reason": "stop"}]})
    assert llm.ModelClient("chatgpt", api_key="k").complete("p") == "hi"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer k"


@patch("llm.requests.post")
def test_non_dict_candidate_is_transport_error(post):
    post.return_value = _response({"candidates": ["not an object"]})
    with pytest.raises(TransportError):
        llm.ModelClient("gemini", api_key="k").complete("prompt")
