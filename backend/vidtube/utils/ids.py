import uuid


def parse_id(value: str | None) -> str | None:
    """Canonical lowercase hyphenated form of a record id, or ``None`` if malformed."""
    if not value:
        return None
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None
