"""Tests for the completion client wrappers."""

from unittest.mock import MagicMock, patch

from curation.constants import PROMPTS_DIR
from llm.llm_util import (
    CompletionOk,
    CompletionUnavailable,
    GeminiClient,
    NullClient,
    _response_text,
    render_prompt,
)


class TestRenderPrompt:
    """Tests for render_prompt function."""

    def test_renders_template_variables(self):
        """Test that Jinja2 variables are substituted."""
        prompt = render_prompt(PROMPTS_DIR / "insights.jinja2", {"text": "Some article text."})
        assert "Some article text." in prompt
        assert "{{" not in prompt

    def test_json_braces_survive(self):
        """Test that literal JSON examples in a template are kept."""
        prompt = render_prompt(PROMPTS_DIR / "academic.jinja2", {"text": "x"})
        assert '{"is_academic"' in prompt


class TestNullClient:
    """Tests for NullClient."""

    def test_never_available(self):
        """Test that the null client is unavailable and never completes."""
        client = NullClient()
        assert not client.available()
        assert isinstance(client.complete("s", "u", 10, 0.3), CompletionUnavailable)


class TestGeminiClient:
    """Tests for GeminiClient."""

    def test_unavailable_without_key(self, monkeypatch):
        """Test that a missing API key disables the client."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        client = GeminiClient()

        assert not client.available()
        assert isinstance(client.complete("s", "u", 10, 0.3), CompletionUnavailable)

    def test_model_from_environment(self, monkeypatch):
        """Test that CURATION_MODEL overrides the default model."""
        monkeypatch.setenv("CURATION_MODEL", "gemini-test")
        assert GeminiClient(api_key="key").model_name == "gemini-test"

    @patch("llm.llm_util.ChatGoogleGenerativeAI")
    def test_successful_completion(self, mock_chat):
        """Test that response text is returned as CompletionOk."""
        mock_chat.return_value.invoke.return_value = MagicMock(content="  A summary.  ")

        result = GeminiClient(api_key="key", model_name="gemini-test").complete("system", "user", 100, 0.3)

        assert result == CompletionOk("A summary.")
        kwargs = mock_chat.call_args.kwargs
        assert kwargs["max_output_tokens"] == 100
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_retries"] == 0

    @patch("llm.llm_util.ChatGoogleGenerativeAI")
    def test_exception_becomes_unavailable(self, mock_chat):
        """Test that client errors never raise."""
        mock_chat.return_value.invoke.side_effect = RuntimeError("quota exceeded")

        result = GeminiClient(api_key="key").complete("system", "user", 100, 0.3)

        assert isinstance(result, CompletionUnavailable)
        assert "quota exceeded" in result.reason

    @patch("llm.llm_util.ChatGoogleGenerativeAI")
    def test_empty_response_unavailable(self, mock_chat):
        """Test that an empty response is treated as unavailable."""
        mock_chat.return_value.invoke.return_value = MagicMock(content="")
        result = GeminiClient(api_key="key").complete("system", "user", 100, 0.3)
        assert isinstance(result, CompletionUnavailable)


class TestResponseText:
    """Tests for _response_text helper."""

    def test_list_of_parts(self):
        """Test that Gemini content parts are joined."""
        content = [{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}]
        assert _response_text(content) == "Hello world"

    def test_plain_string(self):
        """Test that string content is returned unchanged."""
        assert _response_text("plain") == "plain"
