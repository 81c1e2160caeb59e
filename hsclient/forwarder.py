"""Installation of files shipped inside theme-installer packages.

Such a package carries a ``config.ini`` with two lines::

    destination=/Themes/file.zip   # where the file goes on the SD card
    location=/file.zip             # where it lives inside the package
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import (
    APP_FILEFWD_FAIL,
    RL_PERMANENT,
    RM_APPLICATION,
    RS_INTERNAL,
    HShopError,
    make_result,
)

DEST_KEY = "destination="
LOC_KEY = "location="
SD_PREFIX = "sdmc:/"


class ForwarderError(HShopError):
    """The forwarded file could not be installed."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            make_result(RL_PERMANENT, RS_INTERNAL, RM_APPLICATION, APP_FILEFWD_FAIL),
            message,
        )


def _value_at(text: str, start: int) -> str:
    end = text.find("\n", start)
    return text[start:] if end < 0 else text[start:end]


def parse_forwarder_config(text: Union[str, bytes]) -> tuple[str, str]:
    """Return ``(destination, location)`` from a config.ini."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", "replace")
    dest_at = text.find(DEST_KEY)
    if dest_at < 0:
        raise ForwarderError("config has no destination")
    loc_at = text.find(LOC_KEY)
    if loc_at < 0:
        raise ForwarderError("config has no location")
    return (
        _value_at(text, dest_at + len(DEST_KEY)),
        _value_at(text, loc_at + len(LOC_KEY)),
    )


def resolve_destination(dest: str, sd_root: Union[str, Path]) -> Path:
    """Map an SD card path (optionally ``sdmc:/``-prefixed) under ``sd_root``."""
    if dest.startswith(SD_PREFIX):
        rel = dest[len(SD_PREFIX):]
    else:
        rel = dest[1:] if dest.startswith("/") else dest
    return Path(sd_root) / rel


def install_forwarded_file(
    config_text: Union[str, bytes],
    read_file: Callable[[str], Optional[bytes]],
    sd_root: Union[str, Path],
) -> Path:
    """Copy the file named in ``config_text`` to its destination.

    ``read_file`` returns the contents of a file inside the package.
    Returns the path written.
    """
    dest, location = parse_forwarder_config(config_text)
    target = resolve_destination(dest, sd_root)
    with contextlib.suppress(OSError):
        target.parent.mkdir(parents=True, exist_ok=True)

    try:
        data = read_file(location)
    except (KeyError, OSError) as exc:
        raise ForwarderError(f"cannot read {location}") from exc
    if data is None:
        raise ForwarderError(f"cannot read {location}")

    try:
        target.write_bytes(bytes(data))
    except OSError as exc:
        raise ForwarderError(f"cannot write {target}") from exc
    return target