import pytest

from keel.keel_command import (
    BUILTIN_COMMANDS,
    CommandClassifier,
    CommandRegistry,
    CommandSpec,
)
from keel.keel_errors import ConfigurationError, KeelError


@pytest.fixture
def registry():
    return CommandRegistry([
        CommandSpec("compile", "pkg.mod:compile", "Compile contracts", frozenset({"build"})),
        CommandSpec("migrate", "pkg.mod:migrate", "Run migrations"),
        CommandSpec("test", "pkg.mod:test", "Run tests"),
    ])


@pytest.fixture
def classifier(registry):
    return CommandClassifier(registry, program_name="truffle")


def test_program_name_prefix_is_stripped(classifier):
    assert classifier.classify("truffle compile") == "compile"
    assert classifier.classify("  truffle   compile --all  ") == "compile --all"


def test_bare_command_is_recognized(classifier):
    assert classifier.classify("migrate --reset") == "migrate --reset"


def test_expression_is_not_a_command(classifier):
    assert classifier.classify("1+1") is None
    assert classifier.classify("compiled = 3") is None
    assert classifier.classify("") is None
    assert classifier.classify("truffle") is None


def test_program_name_must_be_a_whole_token(classifier):
    assert classifier.normalize("trufflecompile") == "trufflecompile"
    assert classifier.classify("trufflecompile") is None


def test_aliases_honour_the_disable_flag(registry):
    assert CommandClassifier(registry, "truffle").classify("build") == "build"
    assert CommandClassifier(registry, "truffle", aliases_disabled=True).classify("build") is None


def test_lookup_returns_the_command(registry):
    spec = registry.lookup("build --all")
    assert spec.name == "compile"
    assert registry.lookup("test") is registry.commands["test"]
    # No implicit prefix aliases
    assert registry.lookup("comp") is None


def test_from_config_adds_custom_commands():
    registry = CommandRegistry.from_config({
        "deploy": {"target": "tasks:deploy", "aliases": ["d"], "description": "Deploy"},
        "lint": "tasks:lint",
    })
    assert registry.lookup("d").name == "deploy"
    assert registry.lookup("lint").target == "tasks:lint"
    for spec in BUILTIN_COMMANDS:
        assert registry.lookup(spec.name) is spec


def test_from_config_rejects_entries_without_target():
    with pytest.raises(ConfigurationError):
        CommandRegistry.from_config({"broken": {"aliases": ["b"]}})


def test_spec_resolve_imports_target():
    spec = CommandSpec("version", "keel.keel_command:run_version")
    assert callable(spec.resolve())
    with pytest.raises(KeelError):
        CommandSpec("bad", "no_such_module_here:fn").resolve()
    with pytest.raises(KeelError):
        CommandSpec("bad", "missing-colon").resolve()


def test_specs_are_immutable():
    spec = CommandSpec("x", "a:b")
    with pytest.raises(AttributeError):
        spec.name = "y"


@pytest.mark.parametrize("text", [
    "compile = 3",
    "test=1",
    "truffle migrate = {}",
    "compile += 1",
    "test //= 2",
    "build = []",
])
def test_assignment_to_a_command_name_is_not_a_command(classifier, text):
    assert classifier.classify(text) is None


@pytest.mark.parametrize("text,expected", [
    ("compile --all=true", "compile --all=true"),
    ("test == 1", "test == 1"),
    ("migrate -f=1", "migrate -f=1"),
])
def test_commands_with_equals_signs_in_arguments(classifier, text, expected):
    assert classifier.classify(text) == expected
