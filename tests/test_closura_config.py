import pytest
from closura import DispatchConfig, ResolveStrategy, ConfigError, load_config
from closura.closura_config import dbg


def write(tmp_path, text, name="closura.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = DispatchConfig()
    assert config.default_resolve_strategy is ResolveStrategy.OWNER_FIRST
    assert config.coerce_numerics is False
    assert config.debug is False
    assert load_config(environ={}) == config


def test_load_yaml_file(tmp_path):
    path = write(tmp_path, "default_resolve_strategy: delegate-first\ncoerce_numerics: yes\n")
    config = load_config(path, environ={})
    assert config.default_resolve_strategy is ResolveStrategy.DELEGATE_FIRST
    assert config.coerce_numerics is True
    assert config.debug is False


def test_load_nested_section(tmp_path):
    path = write(tmp_path, "closura:\n  debug: true\n")
    assert load_config(str(path), environ={}).debug is True


def test_load_json_file(tmp_path):
    path = write(tmp_path, '{"default_resolve_strategy": "SELF"}', name="closura.json")
    assert load_config(path, environ={}).default_resolve_strategy is ResolveStrategy.SELF


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(write(tmp_path, ""), environ={}) == DispatchConfig()


@pytest.mark.parametrize(
    "text,fragment",
    [
        ("resolve: owner_first\n", "unknown keys ['resolve']"),
        ("- a\n- b\n", "must contain a mapping"),
        ("debug: maybe\n", "debug must be a boolean"),
        ("default_resolve_strategy: sideways\n", "Unknown resolve strategy"),
        ("debug: [\n", "cannot parse"),
    ],
)
def test_invalid_files(tmp_path, text, fragment):
    with pytest.raises(ConfigError) as e:
        load_config(write(tmp_path, text), environ={})
    assert isinstance(e.value, ValueError)
    assert str(e.value).startswith("Invalid configuration: ")
    assert fragment in str(e.value)


def test_environment_overrides_file(tmp_path):
    path = write(tmp_path, "default_resolve_strategy: owner_only\ndebug: false\n")
    env = {"CLOSURA_RESOLVE_STRATEGY": "DELEGATE_ONLY", "CLOSURA_DEBUG": "on", "CLOSURA_COERCE_NUMERICS": "1"}
    config = load_config(path, environ=env)
    assert config.default_resolve_strategy is ResolveStrategy.DELEGATE_ONLY
    assert config.debug is True
    assert config.coerce_numerics is True


def test_with_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv("CLOSURA_COERCE_NUMERICS", "true")
    assert DispatchConfig().with_env().coerce_numerics is True


def test_bad_environment_value_is_a_config_error():
    with pytest.raises(ConfigError):
        DispatchConfig().with_env({"CLOSURA_DEBUG": "loud"})


def test_from_mapping_accepts_members_and_bools():
    config = DispatchConfig.from_mapping(
        {"default_resolve_strategy": ResolveStrategy.SELF, "coerce_numerics": True}
    )
    assert config == DispatchConfig(ResolveStrategy.SELF, True, False)


def test_dbg_writes_only_when_enabled(capsys, monkeypatch):
    dbg(DispatchConfig(), "quiet")
    assert capsys.readouterr().err == ""
    dbg(DispatchConfig(debug=True), "table", 1)
    assert capsys.readouterr().err == "[DBG] table 1\n"
    monkeypatch.setenv("CLOSURA_DEBUG", "0")
    dbg(DispatchConfig(), "still quiet")
    assert capsys.readouterr().err == ""
    monkeypatch.setenv("CLOSURA_DEBUG", "yes")
    dbg(DispatchConfig(), "loud")
    assert capsys.readouterr().err == "[DBG] loud\n"


def test_missing_file_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError) as e:
        load_config(tmp_path / "absent.yaml", environ={})
    assert "cannot read" in str(e.value)
