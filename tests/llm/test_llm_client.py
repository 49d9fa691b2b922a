"""
Tests for the LLM client retry logic and the OpenAI-compatible client.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dbexplorer.cli_display import TokenTracker
from dbexplorer.llm import base as llm_base
from dbexplorer.llm import openai_client
from dbexplorer.llm.base import LLMClient, LLMError
from dbexplorer.llm.openai_client import OpenAIClient


class ScriptedLLM(LLMClient):
    """Returns (or raises) the next item of *script* on each call."""

    def __init__(self, script, **kwargs):
        super().__init__(**kwargs)
        self.script = list(script)
        self.calls = 0

    def _generate(self, prompt):
        self.calls += 1
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def sleeps(monkeypatch):
    waits = []
    monkeypatch.setattr(llm_base.time, "sleep", waits.append)
    return waits


class TestRetry:

    def test_first_try(self, sleeps):
        llm = ScriptedLLM(["ok"])
        assert llm.generate_response("p") == "ok"
        assert sleeps == []

    def test_retries_after_error(self, sleeps):
        llm = ScriptedLLM([RuntimeError("boom"), "ok"], retry_delay=1.0)
        assert llm.generate_response("p") == "ok"
        assert llm.calls == 2
        assert len(sleeps) == 1
        assert 1.0 <= sleeps[0] <= 1.1

    def test_retries_after_empty_response(self, sleeps):
        llm = ScriptedLLM(["   ", "ok"])
        assert llm.generate_response("p") == "ok"

    def test_gives_up(self, sleeps):
        llm = ScriptedLLM([RuntimeError("a"), RuntimeError("b"), RuntimeError("c")])
        with pytest.raises(LLMError, match="c"):
            llm.generate_response("p")
        assert llm.calls == 3
        assert len(sleeps) == 2

    def test_empty_after_all_retries(self, sleeps):
        llm = ScriptedLLM(["", "", ""])
        with pytest.raises(LLMError, match="empty"):
            llm.generate_response("p")

    def test_rate_limit_waits_longer(self, sleeps):
        llm = ScriptedLLM([RuntimeError("429 Too Many Requests"), "ok"], retry_delay=1.0)
        llm.generate_response("p")
        assert sleeps[0] >= 2.0


class TestOpenAIClient:

    def _response(self, content, usage=None):
        resp = MagicMock()
        resp.json.return_value = {
            "choices": [{"message": {"content": content}}],
            "usage": usage or {"prompt_tokens": 12, "completion_tokens": 5},
        }
        return resp

    def test_posts_chat_completion(self, monkeypatch):
        post = MagicMock(return_value=self._response("A table of orders."))
        monkeypatch.setattr(openai_client.requests, "post", post)
        tracker = TokenTracker()
        monkeypatch.setattr(openai_client, "token_tracker", tracker)

        client = OpenAIClient("http://llm.local/v1/", "m1", api_key="k", temperature=0.1)
        assert client.generate_response("describe") == "A table of orders."

        url = post.call_args.args[0]
        kwargs = post.call_args.kwargs
        assert url == "http://llm.local/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer k"
        assert kwargs["json"]["model"] == "m1"
        assert kwargs["json"]["messages"][-1] == {"role": "user", "content": "describe"}
        assert tracker.call_count == 1
        assert tracker.total_tokens == 17

    def test_no_auth_header_without_key(self, monkeypatch):
        post = MagicMock(return_value=self._response("x"))
        monkeypatch.setattr(openai_client.requests, "post", post)
        OpenAIClient("http://llm.local/v1", "m1").generate_response("p")
        assert "Authorization" not in post.call_args.kwargs["headers"]

    def test_http_error_is_retried_then_raised(self, monkeypatch, sleeps):
        resp = MagicMock()
        resp.raise_for_status.side_effect = RuntimeError("500 Server Error")
        monkeypatch.setattr(openai_client.requests, "post", MagicMock(return_value=resp))
        client = OpenAIClient("http://llm.local/v1", "m1", max_retries=2, retry_delay=0)
        with pytest.raises(LLMError):
            client.generate_response("p")
