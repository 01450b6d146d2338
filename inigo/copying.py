"""Copying files and directory trees with their attributes preserved."""

import subprocess


def copy_path(source_path, destination_path):
    """Copy with ``cp -a``; raise ValueError on an empty path, CalledProcessError on failure."""
    if not source_path or not destination_path:
        raise ValueError("source and destination paths must not be empty")
    subprocess.run(["cp", "-a", source_path, destination_path], check=True, capture_output=True)