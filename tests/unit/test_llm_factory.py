"""Tests for the LLM provider factory."""

import pytest
from unittest.mock import patch, Mock

from mender.config import reload_config
from mender.errors import ConfigurationError


class TestGetLangchainLlm:
    """Tests for get_langchain_llm()."""

    @patch("langchain_openai.ChatOpenAI")
    def test_builds_chat_openai_from_config(self, mock_chat_openai, monkeypatch):
        from mender.llm_factory import get_langchain_llm

        monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-nano")
        reload_config()
        mock_chat_openai.return_value = Mock()

        get_langchain_llm()

        call_kwargs = mock_chat_openai.call_args.kwargs
        assert call_kwargs["model"] == "gpt-4.1-nano"
        assert call_kwargs["api_key"] == "test-openai-key"
        assert call_kwargs["max_tokens"] == 4096

    @patch("langchain_openai.ChatOpenAI")
    def test_missing_key_raises_before_construction(self, mock_chat_openai, monkeypatch):
        from mender.llm_factory import get_langchain_llm

        monkeypatch.setenv("OPENAI_API_KEY", "")
        reload_config()

        with pytest.raises(ConfigurationError):
            get_langchain_llm()
        mock_chat_openai.assert_not_called()


class TestChatCompletion:
    """Tests for chat_completion()."""

    @patch("openai.OpenAI")
    def test_openai_chat_completion(self, mock_openai_cls):
        from mender.llm_factory import chat_completion

        mock_client = Mock()
        mock_response = Mock()
        mock_response.choices = [Mock()]
        mock_response.choices[0].message.content = "  test response \n"
        mock_client.chat.completions.create.return_value = mock_response
        mock_openai_cls.return_value = mock_client

        result = chat_completion(messages=[{"role": "user", "content": "hello"}], max_tokens=100)

        assert result == "test response"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]
        mock_openai_cls.assert_called_once_with(api_key="test-openai-key")

    @patch("openai.OpenAI")
    def test_missing_key_raises_before_network(self, mock_openai_cls, monkeypatch):
        from mender.llm_factory import chat_completion

        monkeypatch.setenv("OPENAI_API_KEY", "")
        reload_config()

        with pytest.raises(ConfigurationError):
            chat_completion([{"role": "user", "content": "hi"}])
        mock_openai_cls.assert_not_called()
