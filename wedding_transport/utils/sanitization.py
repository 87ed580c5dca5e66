import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def unescape_string(value: Optional[str]) -> str:
    """Stored text back to what the user typed, for files leaving the system"""
    if not value:
        return ""
    return html.unescape(value)


def clean_csv_cell(value: Optional[str], max_length: int = 255) -> str:
    """
    Strip quoting debris and whitespace from an imported CSV cell.

    Cells are unescaped so that text exported in stored (escaped) form is not
    escaped a second time when it is sanitized on the way back in.
    """
    if value is None:
        return ""
    return html.unescape(value.replace('"', "").strip())[:max_length]
