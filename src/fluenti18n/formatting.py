from typing import Any, Sequence


def try_format(template: str, args: Sequence[Any]) -> str | None:
    """Positional ``str.format`` substitution, or None when the template does not fit it."""
    try:
        return template.format(*args)
    except (IndexError, KeyError, ValueError, AttributeError, TypeError):
        return None


def simple_format(template: str, args: Sequence[Any]) -> str:
    """Literal replacement of ``{0}``, ``{1}`` ... and then ``{}`` in order."""
    result = template
    for index, arg in enumerate(args):
        result = result.replace(f"{{{index}}}", str(arg))
    for arg in args:
        if "{}" not in result:
            break
        result = result.replace("{}", str(arg), 1)
    return result


def format_message(template: str | None, args: Sequence[Any] = ()) -> str | None:
    if template is None or not args:
        return template
    formatted = try_format(template, args)
    if formatted is None:
        formatted = simple_format(template, args)
    return formatted
