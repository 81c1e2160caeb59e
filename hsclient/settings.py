"""Persistent settings and the flags packed into them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag

LUMALOCALE_SHIFT = 6
SORTDIRECTION_SHIFT = 8
SORTMETHOD_SHIFT = 9


class LumaLocaleMode(Enum):
    disabled = 0
    automatic = 1
    manual = 2


class SortDirection(Enum):
    ascending = 0
    descending = 1


class SortMethod(Enum):
    alpha = 0
    tid = 1
    size = 2
    downloads = 3
    id = 4


class Flag0(IntFlag):
    RESUME_DOWNLOADS = 0x1
    LOAD_FREE_SPACE = 0x2
    SHOW_BATTERY = 0x4
    SHOW_NET = 0x8
    BAD_TIME_FORMAT = 0x10
    PROGBAR_TOP = 0x20
    LUMALOCALE0 = 0x40
    LUMALOCALE1 = 0x80
    SORTDIRECTION0 = 0x100
    SORTMETHOD0 = 0x200
    SORTMETHOD1 = 0x400
    SORTMETHOD2 = 0x800
    SORTMETHOD3 = 0x1000
    SEARCH_ECONTENT = 0x2000
    WARN_NO_BASE = 0x4000
    ALLOW_LED = 0x8000
    DEFAULT_REINSTALL = 0x10000
    SHOW_ALT = 0x20000
    DISABLE_GRAPH = 0x40000
    GOTO_REGION = 0x80000


_LUMALOCALE_MASK = Flag0.LUMALOCALE0 | Flag0.LUMALOCALE1
_SORTMETHOD_MASK = (
    Flag0.SORTMETHOD0 | Flag0.SORTMETHOD1 | Flag0.SORTMETHOD2 | Flag0.SORTMETHOD3
)


@dataclass
class Settings:
    """User settings."""

    flags0: int = 0
    lang: int = 0
    max_elogs: int = 0
    migration: int = 0
    theme_path: str = ""
    proxy_port: int = 0
    proxy_host: str = ""
    proxy_username: str = ""
    proxy_password: str = ""

    def has(self, flag: Flag0) -> bool:
        """Whether every bit of ``flag`` is set."""
        return (self.flags0 & flag) == flag

    @property
    def luma_locale(self) -> LumaLocaleMode:
        return LumaLocaleMode((self.flags0 & _LUMALOCALE_MASK) >> LUMALOCALE_SHIFT)

    @property
    def sort_direction(self) -> SortDirection:
        return SortDirection((self.flags0 & Flag0.SORTDIRECTION0) >> SORTDIRECTION_SHIFT)

    @property
    def sort_method(self) -> SortMethod:
        return SortMethod((self.flags0 & _SORTMETHOD_MASK) >> SORTMETHOD_SHIFT)