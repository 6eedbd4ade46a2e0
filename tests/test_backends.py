"""
Unit tests for provider backends.

Tests SDK call shapes with the provider clients mocked out.
"""

from unittest.mock import Mock, patch

import pytest

from legal_doc_auto.sdk.backends import (
    DEFAULT_CLAUDE_MODEL,
    AnthropicBackend,
    GeminiBackend,
    OpenAIBackend,
)


class TestOpenAIBackend:
    """Test OpenAI chat completions backend."""

    @patch('legal_doc_auto.sdk.backends.OpenAI')
    def test_init_passes_key_and_timeout(self, mock_openai_class):
        backend = OpenAIBackend(api_key="sk-test", model="gpt-4o", timeout=30)

        mock_openai_class.assert_called_once_with(api_key="sk-test", timeout=30)
        assert backend.model == "gpt-4o"
        assert backend.name == "openai"

    def test_init_missing_key(self):
        """Test initialization fails with missing API key."""
        with pytest.raises(ValueError, match="api_key is required"):
            OpenAIBackend(api_key="")

        with pytest.raises(ValueError, match="api_key is required"):
            OpenAIBackend(api_key=None)

    @patch('legal_doc_auto.sdk.backends.OpenAI')
    def test_generate(self, mock_openai_class):
        mock_response = Mock()
        mock_response.choices = [Mock()]
        mock_response.choices[0].message.content = "PETITION TEXT"
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = mock_response
        mock_openai_class.return_value = mock_client

        backend = OpenAIBackend(api_key="sk-test", model="gpt-4o")
        text = backend.generate("system", "user", 0.2, 2000)

        assert text == "PETITION TEXT"
        mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-4o",
            messages=[
                {"role": "system", "content": "system"},
                {"role": "user", "content": "user"},
            ],
            temperature=0.2,
            max_tokens=2000,
        )

    @patch('legal_doc_auto.sdk.backends.OpenAI')
    def test_generate_propagates_errors(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = Exception("API Error")
        mock_openai_class.return_value = mock_client

        backend = OpenAIBackend(api_key="sk-test")

        with pytest.raises(Exception, match="API Error"):
            backend.generate("system", "user", 0.2, 2000)


class TestAnthropicBackend:
    """Test Anthropic messages backend."""

    @patch('legal_doc_auto.sdk.backends.anthropic')
    def test_generate(self, mock_anthropic):
        block = Mock(type="text", text="AGREEMENT TEXT")
        mock_client = Mock()
        mock_client.messages.create.return_value = Mock(content=[block])
        mock_anthropic.Anthropic.return_value = mock_client

        backend = AnthropicBackend(api_key="key")
        text = backend.generate("system", "user", 0.2, 2000)

        assert text == "AGREEMENT TEXT"
        mock_client.messages.create.assert_called_once_with(
            model=DEFAULT_CLAUDE_MODEL,
            max_tokens=2000,
            temperature=0.2,
            system="system",
            messages=[{"role": "user", "content": "user"}],
        )

    @patch('legal_doc_auto.sdk.backends.anthropic')
    def test_non_text_block_is_an_error(self, mock_anthropic):
        mock_client = Mock()
        mock_client.messages.create.return_value = Mock(content=[Mock(type="tool_use")])
        mock_anthropic.Anthropic.return_value = mock_client

        with pytest.raises(ValueError, match="Unexpected Claude response block type"):
            AnthropicBackend(api_key="key").generate("system", "user", 0.2, 2000)


class TestGeminiBackend:
    """Test Google Generative AI backend."""

    @patch('legal_doc_auto.sdk.backends.genai')
    def test_generate(self, mock_genai):
        mock_model = Mock()
        mock_model.generate_content.return_value = Mock(text="ORDER TEXT")
        mock_genai.GenerativeModel.return_value = mock_model

        backend = GeminiBackend(api_key="key", model="gemini-pro", timeout=20)
        text = backend.generate("system", "user", 0.3, 1000)

        assert text == "ORDER TEXT"
        mock_genai.configure.assert_called_once_with(api_key="key")
        mock_genai.GenerationConfig.assert_called_once_with(temperature=0.3, max_output_tokens=1000)
        args, kwargs = mock_genai.GenerativeModel.call_args
        assert args == ("gemini-pro",)
        assert kwargs["system_instruction"] == "system"
        mock_model.generate_content.assert_called_once_with("user", request_options={"timeout": 20})

    @patch('legal_doc_auto.sdk.backends.genai')
    def test_empty_response_is_an_error(self, mock_genai):
        mock_model = Mock()
        mock_model.generate_content.return_value = Mock(text="")
        mock_genai.GenerativeModel.return_value = mock_model

        with pytest.raises(ValueError, match="Empty response from Gemini"):
            GeminiBackend(api_key="key").generate("system", "user", 0.2, 2000)
