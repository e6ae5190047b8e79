import uuid


def is_valid_id(value: str) -> bool:
    """Whether value parses as a UUID, the type of every primary key."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
