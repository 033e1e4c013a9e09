"""Tests for the command-line interface."""
import pytest
import typer
from typer.testing import CliRunner

from oneedge.api import (
    ApiError,
    ChatCompletionChunk,
    ChatCompletionsAPI,
    EnvCredentialProvider,
    FileCredentialProvider,
    ModelInfo,
    OneEdgeClient,
)
from oneedge.cli import providers
from oneedge.cli.app import app

runner = CliRunner()


class StubBackend(ChatCompletionsAPI):
    """Backend returning canned results."""

    def __init__(self, text: str = "Hi there", fail: bool = False, healthy: bool = True):
        self.text = text
        self.fail = fail
        self.healthy = healthy
        self.closed = False
        self.requests = []

    async def create_chat_completion(self, request, cancel_token=None):
        raise ApiError(500, "fallback down")

    async def stream_chat_completion(self, request, cancel_token=None):
        self.requests.append(request)
        if self.fail:
            raise ApiError(502, "stream down")
        yield ChatCompletionChunk.model_validate({"choices": [{"delta": {"content": self.text}}]})

    async def list_models(self):
        return [ModelInfo(id="gpt-4", owned_by="openai", created=1677610602)]

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub(monkeypatch):
    backend = StubBackend()
    monkeypatch.setattr("oneedge.cli.app.get_backend", lambda model=None, console=None: backend)
    return backend


class TestProviders:
    """Tests for backend selection from the environment."""

    def test_env_credentials_by_default(self, monkeypatch):
        """Test that the environment provider is used without a file."""
        monkeypatch.delenv("ONEEDGE_CREDENTIALS_FILE", raising=False)

        assert isinstance(providers.get_credentials(), EnvCredentialProvider)

    def test_file_credentials(self, monkeypatch, tmp_path):
        """Test that ONEEDGE_CREDENTIALS_FILE selects the file provider."""
        monkeypatch.setenv("ONEEDGE_CREDENTIALS_FILE", str(tmp_path / "c.json"))

        assert isinstance(providers.get_credentials(), FileCredentialProvider)

    def test_missing_key_exits(self, monkeypatch):
        """Test exit code 1 when no key is configured."""
        monkeypatch.delenv("ONEEDGE_BACKEND", raising=False)
        monkeypatch.delenv("ONEEDGE_CREDENTIALS_FILE", raising=False)
        monkeypatch.delenv("ONEEDGE_API_KEY", raising=False)

        with pytest.raises(typer.Exit):
            providers.get_backend("gpt-4")

    async def test_oneedge_backend(self, monkeypatch):
        """Test the gateway backend built from environment variables."""
        monkeypatch.delenv("ONEEDGE_BACKEND", raising=False)
        monkeypatch.delenv("ONEEDGE_CREDENTIALS_FILE", raising=False)
        monkeypatch.setenv("ONEEDGE_API_KEY", "key")
        monkeypatch.setenv("ONEEDGE_BASE_URL", "https://gw.test/")

        backend = providers.get_backend("gpt-4")

        assert isinstance(backend, OneEdgeClient)
        assert backend.base_url == "https://gw.test"
        await backend.close()

    def test_openai_requires_key(self, monkeypatch):
        """Test exit code 1 for the openai backend without a key."""
        monkeypatch.setenv("ONEEDGE_BACKEND", "openai")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(typer.Exit):
            providers.get_backend()

    def test_unknown_backend(self, monkeypatch):
        """Test exit code 1 for an unknown backend."""
        monkeypatch.setenv("ONEEDGE_BACKEND", "carrier-pigeon")

        with pytest.raises(typer.Exit):
            providers.get_backend()

    def test_default_model(self, monkeypatch):
        """Test the model default and its override."""
        monkeypatch.delenv("ONEEDGE_MODEL", raising=False)
        assert providers.default_model() == "default"

        monkeypatch.setenv("ONEEDGE_MODEL", "gpt-4o")
        assert providers.default_model() == "gpt-4o"


class TestCommands:
    """Tests for CLI commands."""

    def test_ask(self, stub):
        """Test that ask prints the reply and closes the backend."""
        result = runner.invoke(app, ["ask", "Hello", "--model", "gpt-4", "--temperature", "0.2"])

        assert result.exit_code == 0, result.output
        assert "Hi there" in result.output
        assert stub.closed
        assert stub.requests[0].model == "gpt-4"
        assert stub.requests[0].temperature == 0.2

    def test_ask_failure(self, stub):
        """Test that a failed reply prints the error and exits 1."""
        stub.fail = True

        result = runner.invoke(app, ["ask", "Hello"])

        assert result.exit_code == 1
        assert "fallback down" in result.output

    def test_chat_session(self, stub):
        """Test a short interactive session."""
        result = runner.invoke(app, ["chat"], input="Hello\n/clear\n/exit\n")

        assert result.exit_code == 0, result.output
        assert "Hi there" in result.output
        assert "Conversation cleared" in result.output
        assert len(stub.requests) == 1

    def test_models(self, stub):
        """Test the model table."""
        result = runner.invoke(app, ["models"])

        assert result.exit_code == 0, result.output
        assert "gpt-4" in result.output
        assert "openai" in result.output

    def test_health(self, stub):
        """Test healthy and unhealthy gateways."""
        result = runner.invoke(app, ["health"])
        assert result.exit_code == 0
        assert "healthy" in result.output

        stub.healthy = False
        result = runner.invoke(app, ["health"])
        assert result.exit_code == 1
        assert "unreachable" in result.output
