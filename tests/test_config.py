import logging

from threadfilter.config import DEFAULT_ENCODING, DEFAULT_MODE, config_path, load_config, resolve_settings


def test_defaults_without_any_source(isolated_config):
    settings = resolve_settings()
    assert settings.person is None
    assert settings.mode == DEFAULT_MODE
    assert settings.encoding == DEFAULT_ENCODING


def test_config_path_from_environment(isolated_config):
    assert config_path() == isolated_config


def test_config_file_values(isolated_config):
    isolated_config.write_text("person: Alice\nmode: stream\nencoding: latin-1\n")
    settings = resolve_settings()
    assert settings.person == "Alice"
    assert settings.mode == "stream"
    assert settings.encoding == "latin-1"


def test_environment_beats_config_file(isolated_config, monkeypatch):
    isolated_config.write_text("person: Alice\nmode: buffer\n")
    monkeypatch.setenv("THREADFILTER_PERSON", "Bob")
    monkeypatch.setenv("THREADFILTER_MODE", "stream")
    settings = resolve_settings()
    assert settings.person == "Bob"
    assert settings.mode == "stream"


def test_cli_arguments_beat_everything(isolated_config, monkeypatch):
    isolated_config.write_text("person: Alice\nmode: stream\n")
    monkeypatch.setenv("THREADFILTER_PERSON", "Bob")
    settings = resolve_settings(person="Carol", mode="buffer", encoding="utf-16")
    assert (settings.person, settings.mode, settings.encoding) == ("Carol", "buffer", "utf-16")


def test_empty_person_is_kept(isolated_config):
    assert resolve_settings(person="").person == ""


def test_broken_yaml_is_ignored(isolated_config, caplog):
    isolated_config.write_text("person: [unclosed\n")
    with caplog.at_level(logging.WARNING, logger="threadfilter"):
        assert load_config() == {}
    assert "Ignoring config file" in caplog.text


def test_non_mapping_config_is_ignored(isolated_config):
    isolated_config.write_text("- just\n- a list\n")
    assert load_config() == {}


def test_empty_config_file(isolated_config):
    isolated_config.write_text("")
    assert load_config() == {}


def test_invalid_values_fall_back(isolated_config, monkeypatch, caplog):
    isolated_config.write_text("mode: sorted\nencoding: no-such-codec\n")
    monkeypatch.setenv("THREADFILTER_MODE", "loud")
    with caplog.at_level(logging.WARNING, logger="threadfilter"):
        settings = resolve_settings()
    assert settings.mode == DEFAULT_MODE
    assert settings.encoding == DEFAULT_ENCODING
    assert "no-such-codec" in caplog.text


def test_numeric_person_in_yaml_becomes_text(isolated_config):
    isolated_config.write_text("person: 42\n")
    assert resolve_settings().person == "42"
