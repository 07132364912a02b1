import pytest
import yaml

from keel.keel_serialize import serialize, deserialize, detect_format, to_builtin


def test_json_text_is_sniffed():
    value = {"a": 1, "b": [1, 2, "x"], "c": {"d": True}}
    assert deserialize(serialize(value, fmt="json")) == value


def test_yaml_is_the_default():
    assert deserialize("a: 1\nb: [x, y]\n") == {"a": 1, "b": ["x", "y"]}


def test_toml_with_fmt():
    assert deserialize(b'title = "T"\n[owner]\nname = "Tom"\n', fmt="toml") == {"title": "T", "owner": {"name": "Tom"}}


@pytest.mark.parametrize(
    "path,expected",
    [
        ("keel-config.json", "json"),
        ("conf/keel-config.YAML", "yaml"),
        ("keel-config.yml", "yaml"),
        ("pyproject.toml", "toml"),
        # The extension decides, not the rest of the path
        ("json/config.yaml", "yaml"),
        ("notes.txt", None),
    ],
)
def test_detect_format_from_extension(path, expected):
    assert detect_format(path) == expected


def test_detect_format_sniffs_data():
    assert detect_format(None, '  [1, 2]') == "json"
    assert detect_format(None, "a: 1") is None


def test_invalid_data_returns_text_unless_strict():
    assert deserialize("{oops", fmt="json") == "{oops"
    with pytest.raises(ValueError):
        deserialize("{oops", fmt="json", strict=True)
    with pytest.raises(yaml.YAMLError):
        deserialize("a: [1,", fmt="yaml", strict=True)


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError):
        deserialize("x", fmt="xml")
    with pytest.raises(ValueError):
        serialize({}, fmt="xml")


def test_live_objects_are_dropped():
    value = {"host": "h", "port": 1, "provider": object(), "headers": {"X": "y"}, "list": [1, object()]}
    assert to_builtin(value) == {"host": "h", "port": 1, "headers": {"X": "y"}, "list": [1]}
    assert serialize(value, fmt="json", pretty=False) == '{"host": "h", "port": 1, "headers": {"X": "y"}, "list": [1]}'


def test_yaml_output_keeps_key_order():
    assert serialize({"b": 1, "a": 2}, fmt="yaml") == "b: 1\na: 2\n"
