"""
Naming helpers shared by the graph model and the synthesizers.

Every derived identifier (entity symbol, file stem, table name, handler
name, test name) comes from here so generated names stay stable across runs.
"""

from __future__ import annotations

import keyword
import re

_WORD_SPLIT = re.compile(r"[\s\-_]+")
_NON_ALNUM = re.compile(r"[^0-9A-Za-z]+")


def symbolify(text: str) -> str:
    """
    Normalize a free-text phrase into a single identifier token.

    Splits on whitespace, hyphens and underscores, upper-cases the first
    letter of each part and keeps the remainder as typed.

    Examples:
        >>> symbolify("order summary")
        'OrderSummary'
        >>> symbolify("create-order")
        'CreateOrder'
        >>> symbolify("OrderSummary")
        'OrderSummary'
    """
    parts = [p for p in _WORD_SPLIT.split(text.strip()) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def to_snake_case(name: str) -> str:
    """
    Convert a PascalCase or camelCase identifier to snake_case.

    Runs of capitals are kept together as one word, except that the last
    capital of a run starts a new word when a lowercase letter follows it:
    ``HTTPServer`` becomes ``http_server`` and ``UserID`` becomes ``user_id``.
    """
    out: list[str] = []
    n = len(name)
    for i, ch in enumerate(name):
        if ch.isupper():
            if i > 0:
                prev = name[i - 1]
                nxt = name[i + 1] if i + 1 < n else ""
                if prev.islower() or prev.isdigit():
                    out.append("_")
                elif prev.isupper() and nxt.islower():
                    out.append("_")
            out.append(ch.lower())
        elif ch in "- ":
            out.append("_")
        else:
            out.append(ch)
    return re.sub(r"_+", "_", "".join(out)).strip("_")


def path_symbol(path: str) -> str:
    """Symbolify every alphanumeric run of a URL path: ``/views/order-summary`` -> ``ViewsOrderSummary``."""
    return "".join(p[0].upper() + p[1:] for p in _NON_ALNUM.split(path) if p)


def handler_name(method: str, path: str, target: str) -> str:
    """Route handler identifier: ``handle`` + Method + path symbol + target."""
    return f"handle{method.strip().lower().title()}{path_symbol(path)}{target}"


def http_test_name(method: str, target: str) -> str:
    return f"test_{method.strip().lower()}_{to_snake_case(target)}"


def e2e_test_name(target: str) -> str:
    return f"test_e2e_{to_snake_case(target)}"


def is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)
