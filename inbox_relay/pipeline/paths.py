"""Split inbox paths into base name and extension."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from inbox_relay.storage.models import split_path


class ParsedPath(BaseModel):
    """A remote file path broken into the parts placement needs."""

    model_config = ConfigDict(frozen=True)

    path: str
    file_name: str
    base_name: str
    extension: str


def split_extension(file_name: str) -> tuple[str, str]:
    """Return (base name, extension) for a bare file name.

    One separator gives a plain extension; exactly two give a compound
    extension of the last two segments (``tar.gz``). With more than two,
    only the final segment is the extension. Names without a separator,
    or with only a leading one (``.env``), have no extension.
    """
    parts = file_name.split(".")
    if len(parts) < 2 or not parts[0]:
        return file_name, ""
    if len(parts) == 3:
        return parts[0], f"{parts[1]}.{parts[2]}"
    base, ext = file_name.rsplit(".", 1)
    return base, ext


def parse_path(path: str) -> ParsedPath:
    folder, file_name = split_path(path)
    base_name, extension = split_extension(file_name)
    return ParsedPath(
        path=path,
        file_name=file_name,
        base_name=base_name,
        extension=extension,
    )
