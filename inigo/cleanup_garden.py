"""Destroying every container left behind in a Garden server."""

import logging
import time

logger = logging.getLogger(__name__)

_ATTEMPTS = 3
_RETRY_PAUSE = 0.05
_ALREADY_GONE = ("unknown handle", "container already being destroyed")


def _destroy(garden_client, handle):
    """Destroy one container, retrying; return the final error or None."""
    for attempt in range(_ATTEMPTS):
        try:
            garden_client.destroy(handle)
            return None
        except Exception as error:
            if any(marker in str(error) for marker in _ALREADY_GONE):
                return None
            if attempt == _ATTEMPTS - 1:
                return error
            time.sleep(_RETRY_PAUSE)
    return None


def cleanup_garden(garden_client):
    """Destroy all containers known to ``garden_client``.

    The client needs ``containers()`` returning objects with a ``handle``
    attribute and an ``info()`` method, and ``destroy(handle)``. Each
    container gets up to three attempts; containers that are already gone
    or being destroyed count as cleaned up. Returns the errors of the
    containers that could not be destroyed.
    """
    containers = list(garden_client.containers())
    logger.info("cleaning up %d Garden containers", len(containers))

    errors = []
    for container in containers:
        handle = container.handle
        try:
            container_path = getattr(container.info(), "container_path", "")
        except Exception:
            container_path = ""
        logger.info("cleaning up container %s (%s)", handle, container_path)

        error = _destroy(garden_client, handle)
        if error is not None:
            errors.append(error)
    return errors