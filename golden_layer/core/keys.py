"""
Key translation between source-native and canonical identifier spaces.
"""


def translate_key(source_key: str | None, strip_prefix: str, add_prefix: str) -> str | None:
    """
    Translate a source-native key into a canonical enterprise key.

    The input must carry the expected source prefix. Anything else yields None
    instead of a sliced, corrupt key; callers treat None as a resolution
    failure.

    Args:
        source_key: Source-native identifier (e.g. "ENT-IT-10001")
        strip_prefix: Prefix the source system puts on its keys (e.g. "ENT-IT-")
        add_prefix: Canonical prefix (e.g. "IT-")

    Returns:
        Canonical key (e.g. "IT-10001") or None

    Examples:
        >>> translate_key("ENT-IT-10001", "ENT-IT-", "IT-")
        'IT-10001'
        >>> translate_key("XYZ-001", "ABC-", "A-") is None
        True
    """
    if source_key is None or not source_key.startswith(strip_prefix):
        return None
    return add_prefix + source_key[len(strip_prefix):]
