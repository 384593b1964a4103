import json
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from admin_console.errors import NetworkFailure, RemoteOperationFailure
from admin_console.services import llm

def _client_returning(payload):
    client = MagicMock()
    content = payload if isinstance(payload, str) else json.dumps(payload)
    client.chat.completions.create.return_value = MagicMock(
        choices=[MagicMock(message=MagicMock(content=content))]
    )
    return client

def test_generate_social_content_normalizes_hashtags():
    client = _client_returning({"content": " Yeni seri! ", "hashtags": ["ambalaj", "#kozmetik", " "]})
    with patch("admin_console.services.llm.get_client", return_value=client):
        result = llm.generate_social_content("instagram", "Yeni seri")

    assert result == {"content": "Yeni seri!", "hashtags": ["#ambalaj", "#kozmetik"]}
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "instagram" in kwargs["messages"][1]["content"]

def test_hashtags_dropped_when_disabled():
    client = _client_returning({"content": "x", "hashtags": ["#a"]})
    with patch("admin_console.services.llm.get_client", return_value=client):
        assert llm.generate_social_content("twitter", "x", include_hashtags=False)["hashtags"] == []

def test_multi_platform_is_one_request():
    client = _client_returning({
        "instagram": {"content": "IG", "hashtags": ["#ig"]},
        "linkedin": {"content": "LI", "hashtags": []},
    })
    with patch("admin_console.services.llm.get_client", return_value=client):
        results = llm.generate_multi_platform_content(["instagram", "linkedin"], "Lansman")

    assert client.chat.completions.create.call_count == 1
    assert results["instagram"] == {"content": "IG", "hashtags": ["#ig"]}
    assert results["linkedin"]["content"] == "LI"

def test_multi_platform_missing_platform_fails():
    client = _client_returning({"instagram": {"content": "IG"}})
    with patch("admin_console.services.llm.get_client", return_value=client):
        with pytest.raises(RemoteOperationFailure):
            llm.generate_multi_platform_content(["instagram", "tiktok"], "Lansman")

def test_bad_json_is_a_remote_failure():
    client = _client_returning("not json")
    with patch("admin_console.services.llm.get_client", return_value=client):
        with pytest.raises(RemoteOperationFailure):
            llm.generate_social_content("instagram", "x")

def test_timeout_is_a_network_failure():
    client = MagicMock()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)
    with patch("admin_console.services.llm.get_client", return_value=client):
        with pytest.raises(NetworkFailure):
            llm.generate_social_content("instagram", "x")
    assert client.chat.completions.create.call_count == 1

def test_client_requires_key():
    with patch("admin_console.services.llm.settings") as settings:
        settings.openai_api_key = None
        with pytest.raises(RuntimeError):
            llm.get_client()

def test_client_has_timeout_and_no_retries():
    with patch("admin_console.services.llm.settings") as settings, \
         patch("admin_console.services.llm.OpenAI") as openai_cls:
        settings.openai_api_key = "sk-test"
        settings.request_timeout_seconds = 12
        llm.get_client()
    openai_cls.assert_called_once_with(api_key="sk-test", timeout=12, max_retries=0)
