"""
Helpers for turning exceptions into log- and client-safe text.
"""


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.

    Args:
        obj: The object to convert to string

    Returns:
        A string representation of the object, falling back to safe alternatives
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def format_exception_message(exception: BaseException) -> str:
    """
    Describe an exception in one line.

    httpx raises timeouts and some connection errors with an empty message, so
    the exception type name is used whenever the text is blank.
    """
    if exception is None:
        return "None"
    text = _safe_str(exception).strip()
    if not text:
        return type(exception).__name__
    return text
