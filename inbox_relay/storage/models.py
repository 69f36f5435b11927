"""Pydantic models for storage listings."""

from pydantic import BaseModel, ConfigDict


class FolderEntry(BaseModel):
    """A file or folder returned by a folder listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    is_file: bool = False
    is_folder: bool = False


def join_path(folder: str, name: str) -> str:
    """Join a remote folder path and an entry name with a single '/'."""
    folder = folder.rstrip("/")
    return f"{folder}/{name}"


def split_path(path: str) -> tuple[str, str]:
    """Split a remote path into (parent folder, last segment).

    The root folder is returned as an empty string.
    """
    path = path.rstrip("/")
    if "/" not in path:
        return "", path
    parent, name = path.rsplit("/", 1)
    return parent, name
