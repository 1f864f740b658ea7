import uuid


def new_id():
    """Opaque document id used for every billing record."""
    return uuid.uuid4().hex
