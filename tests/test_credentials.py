"""Tests for credential providers and the backend factories."""
import json

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from oneedge.api import (
    ChatCompletionsAPI,
    Credential,
    EnvCredentialProvider,
    FileCredentialProvider,
    OneEdgeClient,
    OneEdgeError,
    StaticCredentialProvider,
    create_chat_backend,
    create_credential_provider,
)


class TestCredential:
    """Tests for the Credential model."""

    def test_default_header(self):
        """Test the default bearer Authorization header."""
        assert Credential(api_key="abc").auth_headers() == {"Authorization": "Bearer abc"}

    def test_custom_header(self):
        """Test a custom header name."""
        credential = Credential(api_key="abc", header_name="x-api-key")
        assert credential.auth_headers() == {"x-api-key": "Bearer abc"}

    def test_empty_key_rejected(self):
        """Test that an empty key is not a credential."""
        with pytest.raises(ValidationError):
            Credential(api_key="")

    def test_frozen(self):
        """Test that credentials are immutable."""
        credential = Credential(api_key="abc")
        with pytest.raises(ValidationError):
            credential.api_key = "other"


class TestStaticCredentialProvider:
    """Tests for in-memory credentials."""

    def test_model_match_preferred(self):
        """Test that a model-bound credential wins over the default."""
        provider = StaticCredentialProvider(
            credentials=[Credential(api_key="gpt", model="gpt-4")],
            default=Credential(api_key="default"),
        )

        assert provider.resolve("gpt-4").api_key == "gpt"
        assert provider.resolve("claude-3").api_key == "default"
        assert provider.resolve(None).api_key == "default"

    def test_nothing_configured(self):
        """Test that an empty provider resolves to None."""
        assert StaticCredentialProvider().resolve("gpt-4") is None


class TestEnvCredentialProvider:
    """Tests for environment credentials."""

    def test_reads_variables(self, monkeypatch):
        """Test that key, base URL and header are read from the environment."""
        monkeypatch.setenv("ONEEDGE_API_KEY", "env-key")
        monkeypatch.setenv("ONEEDGE_BASE_URL", "https://gw.test")
        monkeypatch.setenv("ONEEDGE_AUTH_HEADER", "x-api-key")

        credential = EnvCredentialProvider().resolve("any-model")

        assert credential.api_key == "env-key"
        assert credential.base_url == "https://gw.test"
        assert credential.header_name == "x-api-key"

    def test_missing_key(self, monkeypatch):
        """Test None when no key is set."""
        monkeypatch.delenv("ONEEDGE_API_KEY", raising=False)

        assert EnvCredentialProvider().resolve() is None

    def test_custom_prefix(self, monkeypatch):
        """Test a non-default variable prefix."""
        monkeypatch.setenv("GATEWAY_API_KEY", "prefixed")
        monkeypatch.delenv("GATEWAY_BASE_URL", raising=False)
        monkeypatch.delenv("GATEWAY_AUTH_HEADER", raising=False)

        credential = EnvCredentialProvider(prefix="GATEWAY").resolve()

        assert credential.api_key == "prefixed"
        assert credential.base_url is None
        assert credential.header_name == "Authorization"

    def test_reads_on_every_resolve(self, monkeypatch):
        """Test that a changed key is picked up by the next resolve."""
        provider = EnvCredentialProvider()
        monkeypatch.setenv("ONEEDGE_API_KEY", "first")
        assert provider.resolve().api_key == "first"

        monkeypatch.setenv("ONEEDGE_API_KEY", "second")
        assert provider.resolve().api_key == "second"


class TestFileCredentialProvider:
    """Tests for JSON file credentials."""

    def write(self, path, data) -> None:
        path.write_text(json.dumps(data), encoding="utf-8")

    def test_missing_file(self, tmp_path):
        """Test that a missing file means no credential."""
        provider = FileCredentialProvider(tmp_path / "absent.json")

        assert provider.resolve("gpt-4") is None

    def test_default_and_models(self, tmp_path):
        """Test default and per-model records."""
        path = tmp_path / "credentials.json"
        self.write(path, {
            "default": {"api_key": "default-key"},
            "models": {
                "claude-3": {"api_key": "claude-key", "base_url": "https://claude.test"},
            },
        })
        provider = FileCredentialProvider(path)

        claude = provider.resolve("claude-3")
        assert claude.api_key == "claude-key"
        assert claude.base_url == "https://claude.test"
        assert claude.model == "claude-3"
        assert provider.resolve("gpt-4").api_key == "default-key"

    def test_model_key_in_record_is_overridden(self, tmp_path):
        """Test that the record's model is always the key it is stored under."""
        path = tmp_path / "credentials.json"
        self.write(path, {"models": {"gpt-4": {"api_key": "k", "model": "other"}}})

        assert FileCredentialProvider(path).resolve("gpt-4").model == "gpt-4"

    def test_edits_seen_by_next_resolve(self, tmp_path):
        """Test that the file is re-read on every resolve."""
        path = tmp_path / "credentials.json"
        provider = FileCredentialProvider(path)
        self.write(path, {"default": {"api_key": "old"}})
        assert provider.resolve().api_key == "old"

        self.write(path, {"default": {"api_key": "new"}})
        assert provider.resolve().api_key == "new"

    def test_invalid_json(self, tmp_path):
        """Test that a corrupt file raises OneEdgeError."""
        path = tmp_path / "credentials.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(OneEdgeError, match="not valid JSON"):
            FileCredentialProvider(path).resolve()

    def test_non_object(self, tmp_path):
        """Test that a JSON array is rejected."""
        path = tmp_path / "credentials.json"
        self.write(path, ["api_key"])

        with pytest.raises(OneEdgeError, match="JSON object"):
            FileCredentialProvider(path).resolve()

    def test_invalid_record(self, tmp_path):
        """Test that a record without a key raises OneEdgeError."""
        path = tmp_path / "credentials.json"
        self.write(path, {"default": {"base_url": "https://gw.test"}})

        with pytest.raises(OneEdgeError, match="Invalid credential record"):
            FileCredentialProvider(path).resolve()


class TestFactories:
    """Tests for the factory functions."""

    def test_static_provider(self):
        """Test creating a static provider."""
        provider = create_credential_provider("static", default=Credential(api_key="k"))

        assert isinstance(provider, StaticCredentialProvider)
        assert provider.resolve().api_key == "k"

    def test_kind_is_case_insensitive(self):
        """Test that provider kinds ignore case."""
        assert isinstance(create_credential_provider("ENV"), EnvCredentialProvider)

    def test_file_provider_requires_path(self):
        """Test TypeError when the file provider has no path."""
        with pytest.raises(TypeError, match="path"):
            create_credential_provider("file")

    def test_file_provider(self, tmp_path):
        """Test creating a file provider."""
        provider = create_credential_provider("file", path=tmp_path / "c.json")

        assert isinstance(provider, FileCredentialProvider)
        assert provider.path == tmp_path / "c.json"

    async def test_oneedge_backend(self):
        """Test creating the HTTP client backend."""
        backend = create_chat_backend(
            "oneedge",
            credentials=StaticCredentialProvider(),
            base_url="https://gw.test/",
        )

        assert isinstance(backend, OneEdgeClient)
        assert isinstance(backend, ChatCompletionsAPI)
        assert backend.base_url == "https://gw.test"
        await backend.close()

    def test_oneedge_backend_requires_credentials(self):
        """Test TypeError without a credential provider."""
        with pytest.raises(TypeError, match="credentials"):
            create_chat_backend("oneedge")

    def test_openai_backend_requires_key(self):
        """Test TypeError without an OpenAI key."""
        with pytest.raises(TypeError, match="api_key"):
            create_chat_backend("openai")

    @given(st.text(min_size=1).filter(lambda s: s.lower() not in {"static", "env", "file"}))
    def test_unknown_provider_rejected(self, kind: str):
        """Property test: any other provider name is a ValueError."""
        with pytest.raises(ValueError, match="Unsupported credential provider"):
            create_credential_provider(kind)

    @given(st.text(min_size=1).filter(lambda s: s.lower() not in {"oneedge", "openai"}))
    def test_unknown_backend_rejected(self, kind: str):
        """Property test: any other backend name is a ValueError."""
        with pytest.raises(ValueError, match="Unsupported backend"):
            create_chat_backend(kind)
