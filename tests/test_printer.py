import pytest

from keel.keel_contract import contract
from keel.keel_printer import Printer


@pytest.fixture
def printer():
    return Printer()


@pytest.fixture
def coin():
    abstraction = contract({
        "contractName": "MetaCoin",
        "abi": [
            {"type": "function", "name": "sendCoin", "inputs": [{"name": "receiver"}, {"name": "amount"}]},
            {"type": "function", "name": "getBalance", "inputs": [{"name": "addr"}], "stateMutability": "view"},
        ],
    })
    abstraction.set_network(5777)
    return abstraction


def test_primitives_use_repr(printer):
    assert printer.pformat(2) == "2"
    assert printer.pformat("hi") == "'hi'"
    assert printer.pformat(None) == "None"
    assert printer.pformat(b"\x00") == "b'\\x00'"


def test_short_containers_stay_inline(printer):
    assert printer.pformat({"a": 1, "b": [1, 2]}) == "{'a': 1, 'b': [1, 2]}"
    assert printer.pformat((1,)) == "(1,)"
    assert printer.pformat({3, 1, 2}) == "{1, 2, 3}"
    assert printer.pformat(set()) == "set()"
    assert printer.pformat([]) == "[]"


def test_long_containers_break_with_trailing_commas(printer):
    value = {"accounts": ["0x" + "a" * 40, "0x" + "b" * 40]}
    assert printer.pformat(value) == (
        "{\n"
        "  'accounts': [\n"
        f"    '0x{'a' * 40}',\n"
        f"    '0x{'b' * 40}',\n"
        "  ],\n"
        "}"
    )


def test_contract_lists_its_functions_at_top_level(printer, coin):
    assert printer.pformat(coin) == "<Contract MetaCoin network=5777>\n  .getBalance\n  .sendCoin"
    assert printer.pformat([coin]) == "[<Contract MetaCoin network=5777>]"


def test_contract_function(printer, coin):
    assert printer.pformat(coin.sendCoin) == "MetaCoin.sendCoin(receiver, amount)"


def test_unknown_objects_fall_back_to_repr(printer):
    class Thing:
        def __repr__(self):
            return "<thing>"
    assert printer.pformat(Thing()) == "<thing>"
