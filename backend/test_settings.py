"""Settings loading and the API key store"""

from diagramflow.config import API_KEY_SETTING, GeneratorSettings, load_settings, save_api_key
from diagramflow.settings_store import InMemorySettingsStore, JsonFileSettingsStore


def test_load_settings_prefers_persisted_key():
    store = InMemorySettingsStore({API_KEY_SETTING: "sk-saved"})
    settings = load_settings(store)
    assert settings.openai_api_key == "sk-saved"


def test_load_settings_overrides():
    settings = load_settings(None, api_mode="cloud", openai_model="gpt-4o")
    assert settings.is_cloud
    assert settings.openai_model == "gpt-4o"


def test_save_api_key_writes_through():
    store = InMemorySettingsStore()
    settings = GeneratorSettings()

    save_api_key(settings, "sk-new", store)

    assert settings.openai_api_key == "sk-new"
    assert load_settings(store).openai_api_key == "sk-new"


def test_json_file_store_roundtrip(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = JsonFileSettingsStore(path)

    assert store.get(API_KEY_SETTING) is None
    store.set(API_KEY_SETTING, "sk-file")
    store.set("other", "value")

    reopened = JsonFileSettingsStore(path)
    assert reopened.get(API_KEY_SETTING) == "sk-file"
    assert reopened.get("other") == "value"


def test_json_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileSettingsStore(path)
    assert store.get(API_KEY_SETTING) is None
    store.set(API_KEY_SETTING, "sk-fixed")
    assert store.get(API_KEY_SETTING) == "sk-fixed"


def test_masked_settings_hide_key():
    masked = GeneratorSettings(openai_api_key="sk-abcdefghijkl").masked()
    assert masked["openai_api_key"] == "sk-...ijkl"
    assert GeneratorSettings(openai_api_key="").masked()["openai_api_key"] == ""
