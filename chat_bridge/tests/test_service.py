import pytest

from chat_bridge.api import service
from chat_bridge.domain.exceptions import CredentialFormatError, ValidationError
from chat_bridge.domain.models import ChatMessage, ChatResult


class SettingsStub:
    base_endpoint = "https://api.deepseek.com/v1"
    api_credential = "sk-service-key"
    default_model = "deepseek-reasoner"
    system_prompt = "you are helpful"
    stream = False
    http_timeout = 1.0
    log_redact_content = True


class FakeClient:
    def __init__(self):
        self.calls = []

    def send_message(self, history, model=None, on_delta=None):
        self.calls.append((list(history), model, on_delta))
        return ChatResult(id="x", provider="openai", model=model, choices=[])


@pytest.fixture
def fake(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(service, "settings", SettingsStub())
    monkeypatch.setattr(service, "_client", client)
    return client


def test_chat_prepends_system_prompt(fake):
    prev = [ChatMessage(role="user", content="a"), ChatMessage(role="assistant", content="b")]
    service.chat("c", history=prev)
    history, model, on_delta = fake.calls[0]
    assert [m.role for m in history] == ["system", "user", "assistant", "user"]
    assert history[0].content == "you are helpful"
    assert history[-1].content == "c"
    assert model == "deepseek-reasoner"
    assert on_delta is None


def test_chat_stream_setting_forces_streaming(fake):
    service.settings.stream = True
    try:
        service.chat("hi")
    finally:
        service.settings.stream = False
    _, _, on_delta = fake.calls[0]
    assert on_delta is not None


def test_chat_rejects_empty_input(fake):
    with pytest.raises(ValidationError):
        service.chat("   ")
    assert fake.calls == []


def test_default_client_is_singleton(monkeypatch):
    monkeypatch.setattr(service, "settings", SettingsStub())
    monkeypatch.setattr(service, "_client", None)
    c1 = service.get_default_client()
    assert service.get_default_client() is c1
    cfg = service.set_base_endpoint("https://x.models.ai.azure.com")
    assert cfg.headers == {"api-key": "sk-service-key"}
    cfg = service.set_credential("another-key")
    assert cfg.headers == {"api-key": "another-key"}
    assert c1.config is cfg


def test_switch_to_signed_endpoint_needs_configure(monkeypatch):
    monkeypatch.setattr(service, "settings", SettingsStub())
    monkeypatch.setattr(service, "_client", None)
    before = service.get_default_client().config
    with pytest.raises(CredentialFormatError):
        service.set_base_endpoint("https://gw.llm.internal")
    assert service.get_default_client().config is before
    cfg = service.configure("https://gw.llm.internal", "app1:key1")
    assert cfg.headers["appId"] == "app1"
    assert cfg.base_endpoint == "https://gw.llm.internal"
