"""
Dictionary expression translation.

A dictionary expression is a comma-separated list of ``key=label`` pairs,
for example ``"0=Male,1=Female,2=Unknown"``. Stored codes are translated to
display labels on export and labels back to codes on import. Multi-valued
cells are split on the binding's separator and translated token by token;
tokens without a match are dropped.
"""


def parse_expression(expression: str) -> list[tuple[str, str]]:
    """
    Parse a dictionary expression into ``(key, label)`` pairs.

    Items without an ``=`` are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for item in expression.split(","):
        key, sep, label = item.partition("=")
        if not sep:
            continue
        pairs.append((key, label))
    return pairs


def _convert(value: str, pairs: list[tuple[str, str]], separator: str) -> str:
    lookup: dict[str, str] = {}
    for source, target in pairs:
        lookup.setdefault(source, target)

    if separator not in value:
        return lookup.get(value, "")

    translated = [lookup[token] for token in value.split(separator) if token in lookup]
    return separator.join(translated).rstrip(separator)


def translate(value: str, expression: str, separator: str = ",") -> str:
    """
    Translate stored codes to display labels.

    Example:
        >>> translate("0,1", "0=Male,1=Female", ",")
        'Male,Female'
    """
    return _convert(value, parse_expression(expression), separator)


def reverse(value: str, expression: str, separator: str = ",") -> str:
    """
    Translate display labels back to stored codes.

    Example:
        >>> reverse("Female", "0=Male,1=Female")
        '1'
    """
    pairs = [(label, key) for key, label in parse_expression(expression)]
    return _convert(value, pairs, separator)
