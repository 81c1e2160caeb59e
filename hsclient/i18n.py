"""Interface languages and the choice of a default from system settings."""

from __future__ import annotations

from enum import Enum, IntEnum, auto
from typing import Optional


class Lang(Enum):
    english = auto()
    dutch = auto()
    german = auto()
    spanish = auto()
    french = auto()
    fr_canada = auto()
    italian = auto()
    japanese = auto()
    jp_osaka = auto()
    ryukyuan = auto()
    korean = auto()
    portuguese = auto()
    russian = auto()
    schinese = auto()
    tchinese = auto()
    hungarian = auto()
    romanian = auto()
    latvian = auto()
    polish = auto()
    greek = auto()
    catalan = auto()
    welsh = auto()


class SystemLanguage(IntEnum):
    """Language codes as stored in the system configuration."""

    JP = 0
    EN = 1
    FR = 2
    DE = 3
    IT = 4
    ES = 5
    ZH = 6
    KO = 7
    NL = 8
    PT = 9
    RU = 10
    TW = 11


class CountryCode(IntEnum):
    canada = 18
    greece = 79
    hungary = 80
    latvia = 84
    poland = 97
    romania = 99
    spain = 105
    united_kingdom = 110


class ProvinceCode(IntEnum):
    uk_wales = 5
    sp_catalonia = 11
    japan_osaka = 28
    japan_okinawa = 48


_COUNTRY_LANGS = {
    CountryCode.hungary: Lang.hungarian,
    CountryCode.romania: Lang.romanian,
    CountryCode.latvia: Lang.latvian,
    CountryCode.poland: Lang.polish,
    CountryCode.greece: Lang.greek,
}

_SYSTEM_LANGS = {
    SystemLanguage.DE: Lang.german,
    SystemLanguage.IT: Lang.italian,
    SystemLanguage.ES: Lang.spanish,
    SystemLanguage.ZH: Lang.schinese,
    SystemLanguage.KO: Lang.korean,
    SystemLanguage.NL: Lang.dutch,
    SystemLanguage.PT: Lang.portuguese,
    SystemLanguage.RU: Lang.russian,
    SystemLanguage.TW: Lang.tchinese,
}


def default_lang(
    system_language: Optional[int] = None, country: int = 0, province: int = 0
) -> Lang:
    """Pick an interface language from the system language and region.

    ``system_language`` of ``None`` means it could not be read and English is
    assumed; country and province of 0 mean the region is unknown.
    """
    if country in _COUNTRY_LANGS:
        return _COUNTRY_LANGS[CountryCode(country)]
    if country == CountryCode.spain and province == ProvinceCode.sp_catalonia:
        return Lang.catalan
    if country == CountryCode.united_kingdom and province == ProvinceCode.uk_wales:
        return Lang.welsh

    if system_language is None:
        system_language = SystemLanguage.EN

    if system_language == SystemLanguage.JP:
        if province == ProvinceCode.japan_okinawa:
            return Lang.ryukyuan
        if province == ProvinceCode.japan_osaka:
            return Lang.jp_osaka
        return Lang.japanese
    if system_language == SystemLanguage.FR:
        return Lang.fr_canada if country == CountryCode.canada else Lang.french
    try:
        return _SYSTEM_LANGS.get(SystemLanguage(system_language), Lang.english)
    except ValueError:
        return Lang.english