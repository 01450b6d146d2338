"""Random identifiers for tasks and processes."""

import uuid


def generate_guid():
    """Return a new random (version 4) UUID as a string."""
    return str(uuid.uuid4())