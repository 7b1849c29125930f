from typing import Any, Dict


def replace_text(value: Any, replacements: Dict[str, str]) -> Any:
    """Substitutes every placeholder key of `replacements` found in `value`.

    Used for `:thisdir:` in launcher_config.json and for the `${...}` tokens
    of version arguments. Keys are matched literally, in insertion order.
    Values that are not strings (numbers and booleans from config files) are
    returned as they are.
    """
    if not isinstance(value, str):
        return value
    for placeholder, substitute in replacements.items():
        if placeholder in value:
            value = value.replace(placeholder, str(substitute))
    return value
