import pytest

from jobtrail.core.config import ConfigError, detection_settings, load_config, validate_config


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_empty_file_gets_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    cfg = load_config(path)
    assert cfg["escalation"]["threshold"] == 0.7
    assert cfg["remote"]["endpoint"] == ""
    assert cfg["proxy"]["llm"]["provider"] == "openai"
    assert detection_settings(cfg).remote_configured is False


def test_remote_configured(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "remote:\n  endpoint: https://proxy.example.com/extract\nescalation:\n  threshold: 0.5\n",
        encoding="utf-8",
    )
    settings = detection_settings(load_config(path))
    assert settings.remote_configured is True
    assert settings.escalation_threshold == 0.5


def test_disabled_switch_wins():
    cfg = validate_config({"remote": {"endpoint": "https://x/extract", "enabled": False}})
    assert detection_settings(cfg).remote_configured is False


@pytest.mark.parametrize("threshold", ["high", 1.5])
def test_bad_threshold(threshold):
    with pytest.raises(ConfigError):
        validate_config({"escalation": {"threshold": threshold}})


def test_non_mapping_section():
    with pytest.raises(ConfigError):
        validate_config({"remote": ["x"]})


def test_llm_provider_is_normalized():
    cfg = validate_config({"proxy": {"llm": {"provider": " Gemini "}}})
    assert cfg["proxy"]["llm"]["provider"] == "gemini"


@pytest.mark.parametrize("provider", ["", "   ", None])
def test_blank_llm_provider(provider):
    with pytest.raises(ConfigError):
        validate_config({"proxy": {"llm": {"provider": provider}}})
