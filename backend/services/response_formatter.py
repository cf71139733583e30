"""Sanitizes model output before it is sent as an SMS."""

_STRIPPED_CHARS = ("\\", "*", '"')


def format_reply(text: str) -> str:
    """
    Clean a model reply for plain-text SMS delivery.

    Literal backslash-n escapes become real newlines, then backslashes,
    markdown asterisks and double quotes are removed and the result is
    trimmed.

    Args:
        text: Raw reply from the completion service

    Returns:
        Sanitized reply text
    """
    cleaned = text.replace("\\n", "\n")
    for char in _STRIPPED_CHARS:
        cleaned = cleaned.replace(char, "")
    return cleaned.strip()
