"""
A pretty-printer for console results.
"""
import collections.abc

from keel.keel_contract import ContractAbstraction, ContractFunction

# Containers whose one-line form is at most this wide stay on one line
INLINE_WIDTH = 72


class Printer:
    """Formats evaluation results the way the console echoes them."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, ContractAbstraction): return self._pformat_contract
        if isinstance(obj, collections.abc.Mapping): return self._pformat_dict
        if isinstance(obj, list): return self._pformat_list
        if isinstance(obj, tuple): return self._pformat_tuple
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_primitive,
            bytes: self._pformat_primitive,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            bool: self._pformat_primitive,
            type(None): self._pformat_primitive,
            dict: self._pformat_dict,
            list: self._pformat_list,
            tuple: self._pformat_tuple,
            set: self._pformat_set,
            frozenset: self._pformat_set,
            ContractAbstraction: self._pformat_contract,
            ContractFunction: self._pformat_function,
        }

    def _pformat_primitive(self, obj, level):
        return repr(obj)

    def _pformat_contract(self, obj, level):
        head = repr(obj)
        if level > 0:
            return head
        # Top-level echo also lists the callable interface
        names = sorted(obj.functions)
        if not names:
            return head
        return head + "\n" + "\n".join(f"{self._indent_char}.{n}" for n in names)

    def _pformat_function(self, obj, level):
        return f"{obj.contract.contract_name}.{obj.name}({', '.join(obj.inputs)})"

    def _pformat_block(self, items, level, open_char, close_char):
        if not items:
            return f"{open_char}{close_char}"

        inline = f"{open_char}{', '.join(items)}{close_char}"
        if len(inline) <= INLINE_WIDTH and not any("\n" in i for i in items):
            return inline

        outer_indent = self._indent_char * level
        inner_indent = self._indent_char * (level + 1)
        lines = []
        for item in items:
            # Only the first line needs indenting; nested blocks indent their own contents
            item_lines = item.splitlines() or [""]
            lines.append("\n".join([inner_indent + item_lines[0]] + item_lines[1:]) + ",")
        return f"{open_char}\n" + "\n".join(lines) + f"\n{outer_indent}{close_char}"

    def _pformat_dict(self, obj, level):
        items = [f"{self.pformat(k, level + 1)}: {self.pformat(v, level + 1)}" for k, v in obj.items()]
        return self._pformat_block(items, level, "{", "}")

    def _pformat_list(self, obj, level):
        return self._pformat_block([self.pformat(v, level + 1) for v in obj], level, "[", "]")

    def _pformat_tuple(self, obj, level):
        if len(obj) == 1:
            return f"({self.pformat(obj[0], level + 1)},)"
        return self._pformat_block([self.pformat(v, level + 1) for v in obj], level, "(", ")")

    def _pformat_set(self, obj, level):
        if not obj:
            return f"{type(obj).__name__}()"
        try:
            values = sorted(obj)
        except TypeError:
            values = list(obj)
        return self._pformat_block([self.pformat(v, level + 1) for v in values], level, "{", "}")
