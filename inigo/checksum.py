"""Checksums of downloaded content, formatted the way the file server quotes them."""

import hashlib

_ALGORITHMS = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def hex_value_for_bytes(algorithm, content):
    """Return the hex digest of ``content`` wrapped in double quotes.

    Raises ValueError when ``algorithm`` is not md5, sha1 or sha256.
    """
    try:
        factory = _ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"{algorithm} not valid") from None
    return f'"{factory(bytes(content)).hexdigest()}"'