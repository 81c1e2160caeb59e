"""Client for the hShop web API and the data it returns."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Mapping, Optional

from .errors import (
    APP_API_FAIL,
    APP_JSON_FAIL,
    APP_NON200,
    APP_TITLE_UNLISTED,
    APP_TOO_LARGE,
    RL_PERMANENT,
    RM_APPLICATION,
    RM_HTTP,
    RS_INTERNAL,
    HShopError,
    make_result,
)
from .version import USER_AGENT

log = logging.getLogger(__name__)

VC_SHIFT = 8
VC_MASK = 0xF

_HTTP_CONNECT_FAILED = 73


class VCType(IntEnum):
    """Virtual console system a title emulates, stored in the title flags."""

    none = 0
    gb = 1
    gbc = 2
    gba = 3
    nes = 4
    snes = 5
    gamegear = 6
    pcengine = 7


_VC_PREFIX = {
    VCType.gb: "[GB] ",
    VCType.gbc: "[GBC] ",
    VCType.gba: "[GBA] ",
    VCType.nes: "[NES] ",
    VCType.snes: "[SNES] ",
    VCType.gamegear: "[GameGear] ",
    VCType.pcengine: "[PCEngine] ",
}


class TitleFlag(IntFlag):
    """Boolean properties stored in the title flags."""

    is_ktr = 0x1
    installer = 0x2


def app_error(description: int, message: Optional[str] = None) -> HShopError:
    """Build an error carrying an application-defined result code."""
    return HShopError(
        make_result(RL_PERMANENT, RS_INTERNAL, RM_APPLICATION, description), message
    )


@dataclass
class Subcategory:
    name: str = ""
    cat: str = ""
    disp: str = ""
    desc: str = ""
    titles: int = 0
    size: int = 0


@dataclass
class Category:
    name: str = ""
    disp: str = ""
    desc: str = ""
    prio: float = 0
    titles: int = 0
    size: int = 0
    subcategories: list[Subcategory] = field(default_factory=list)

    def find(self, name: str) -> Optional[Subcategory]:
        """Find a subcategory by internal or display name."""
        return next(
            (s for s in self.subcategories if name in (s.name, s.disp)), None
        )


@dataclass
class Index:
    titles: int = 0
    size: int = 0
    categories: list[Category] = field(default_factory=list)

    def find(self, name: str) -> Optional[Category]:
        """Find a category by internal or display name."""
        return next((c for c in self.categories if name in (c.name, c.disp)), None)


@dataclass
class Title:
    id: int = 0
    tid: int = 0
    size: int = 0
    dl_count: int = 0
    cat: str = ""
    subcat: str = ""
    name: str = ""
    alt: str = ""
    flags: int = 0

    @property
    def vc_type(self) -> Optional[VCType]:
        try:
            return VCType((self.flags >> VC_SHIFT) & VC_MASK)
        except ValueError:
            return None


@dataclass
class FullTitle(Title):
    prod: str = ""
    version: int = 0
    seed: str = ""


# ---------------------------------------------------------------- helpers


def url_encode(text: str) -> str:
    """Percent-encode everything except unreserved characters."""
    out = []
    for byte in text.encode("utf-8"):
        ch = chr(byte)
        if byte < 0x80 and (ch.isalnum() or ch in ".-_~"):
            out.append(ch)
        else:
            out.append(f"%{byte:02X}")
    return "".join(out)


def gen_url(base: str, params: Mapping[str, str]) -> str:
    """Append query parameters to ``base``; values are percent-encoded."""
    pairs = [f"{key}={url_encode(value)}" for key, value in params.items()]
    return base + ("?" + "&".join(pairs) if pairs else "")


def parse_vstring(version: int) -> str:
    """Render a title version as vMAJOR.MINOR.MICRO."""
    return f"v{version >> 10 & 0x3F}.{version >> 4 & 0x3F}.{version & 0xF}"


def tid_to_str(tid: int) -> str:
    """Format a title id as sixteen upper-case hex digits."""
    return f"{tid & 0xFFFFFFFFFFFFFFFF:016X}"


def str_to_tid(text: str) -> int:
    """Parse a hexadecimal title id; invalid text yields 0."""
    try:
        return int(text, 16) & 0xFFFFFFFFFFFFFFFF
    except ValueError:
        return 0


def _is_string(v: Any) -> bool:
    return isinstance(v, str)


def _is_unsigned(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v >= 0


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_object(v: Any) -> bool:
    return isinstance(v, dict)


def _is_array(v: Any) -> bool:
    return isinstance(v, list)


def _get(obj: Any, key: str, check: Callable[[Any], bool]) -> Any:
    value = obj.get(key) if isinstance(obj, dict) else None
    if not check(value):
        log.error("Prop: %s", key)
        raise app_error(APP_JSON_FAIL, f"Prop: {key}")
    return value


def _get_opt(obj: dict, key: str, check: Callable[[Any], bool], default: Any) -> Any:
    if key not in obj:
        return default
    return _get(obj, key, check)


def _is_listed(obj: Any) -> bool:
    return isinstance(obj, dict) and obj.get("is_listed") is True


# ---------------------------------------------------------------- parsing


def _parse_subcategories(cat: str, obj: dict) -> list[Subcategory]:
    return [
        Subcategory(
            disp=_get(jscat, "display_name", _is_string),
            desc=_get(jscat, "description", _is_string),
            name=key,
            cat=cat,
            titles=_get(jscat, "total_content_count", _is_unsigned),
            size=_get(jscat, "size", _is_unsigned),
        )
        for key, jscat in obj.items()
    ]


def _parse_categories(obj: dict) -> list[Category]:
    categories = []
    for key, jcat in obj.items():
        category = Category(
            titles=_get(jcat, "total_content_count", _is_unsigned),
            disp=_get(jcat, "display_name", _is_string),
            desc=_get(jcat, "description", _is_string),
            prio=_get(jcat, "priority", _is_number),
            size=_get(jcat, "size", _is_unsigned),
            name=key,
        )
        category.subcategories = _parse_subcategories(
            key, _get(jcat, "subcategories", _is_object)
        )
        categories.append(category)
    return categories


def parse_index(obj: Any) -> Index:
    """Build the category index from the API's index object."""
    index = Index(
        titles=_get(obj, "total_content_count", _is_unsigned),
        size=_get(obj, "size", _is_unsigned),
    )
    categories = _parse_categories(_get(obj, "entries", _is_object))
    index.categories = sorted(categories, key=lambda c: c.prio, reverse=True)
    return index


def _fill_title(title: Title, obj: Any) -> None:
    title.size = _get(obj, "size", _is_unsigned)
    title.dl_count = _get(obj, "download_count", _is_unsigned)
    title.id = _get(obj, "id", _is_unsigned)
    title.tid = str_to_tid(_get(obj, "title_id", _is_string))
    title.cat = _get(obj, "category", _is_string)
    title.subcat = _get(obj, "subcategory", _is_string)
    title.name = _get(obj, "name", _is_string)
    title.flags = _get(obj, "flags", _is_unsigned)
    title.alt = _get_opt(obj, "alternative_name", _is_string, title.alt)

    prefix = _VC_PREFIX.get(title.vc_type)
    if prefix:
        if title.alt:
            title.alt = prefix + title.alt
        title.name = prefix + title.name


def parse_title(obj: Any) -> Title:
    """Build a title from its API object."""
    title = Title()
    _fill_title(title, obj)
    return title


def parse_full_title(obj: Any) -> FullTitle:
    """Build a title with full metadata; unlisted titles are refused."""
    if not _is_listed(obj):
        raise app_error(APP_TITLE_UNLISTED)
    title = FullTitle()
    _fill_title(title, obj)
    title.prod = _get(obj, "product_code", _is_string)
    title.version = _get(obj, "version", _is_unsigned)
    title.seed = _get_opt(obj, "seed", _is_string, "")
    return title


def parse_titles(items: Any) -> list[Title]:
    """Build the listed titles out of an API array."""
    return [parse_title(item) for item in items if _is_listed(item)]


def _parse_full_titles(items: Any) -> list[FullTitle]:
    return [parse_full_title(item) for item in items if _is_listed(item)]


# ---------------------------------------------------------------- transport


@dataclass
class Response:
    """An HTTP response; header names are lower case."""

    status: int
    headers: dict[str, str]
    body: bytes


Transport = Callable[[str, str, Mapping[str, str], Optional[bytes]], Response]


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def urllib_transport(
    url: str, method: str, headers: Mapping[str, str], data: Optional[bytes]
) -> Response:
    """Perform one request without following redirects."""
    opener = urllib.request.build_opener(_NoRedirect)
    req = urllib.request.Request(url, data=data, method=method, headers=dict(headers))
    try:
        with opener.open(req) as resp:
            return Response(
                resp.status,
                {k.lower(): v for k, v in resp.headers.items()},
                resp.read(),
            )
    except urllib.error.HTTPError as exc:
        return Response(
            exc.code,
            {k.lower(): v for k, v in (exc.headers or {}).items()},
            exc.read() or b"",
        )
    except (urllib.error.URLError, OSError) as exc:
        raise HShopError(
            make_result(RL_PERMANENT, RS_INTERNAL, RM_HTTP, _HTTP_CONNECT_FAILED),
            str(exc),
        ) from exc


# ---------------------------------------------------------------- client


class Client:
    """Talks to the hShop API, CDN, site and update server."""

    def __init__(
        self,
        base_loc: str,
        cdn_base: str,
        site_loc: str,
        update_base: str,
        transport: Optional[Transport] = None,
    ) -> None:
        self.base_loc = base_loc
        self.cdn_base = cdn_base
        self.site_loc = site_loc
        self.update_base = update_base
        self.transport = transport or urllib_transport

    def request(
        self, url: str, method: str = "GET", data: Optional[bytes] = None
    ) -> bytes:
        """Fetch ``url``, following redirects; anything but 200 raises."""
        headers = {"Connection": "Keep-Alive", "User-Agent": USER_AGENT}
        while True:
            post = data if data else None
            resp = self.transport(url, method, headers, post)
            log.debug("API status code on %s: %d", url, resp.status)
            if resp.status // 100 == 3:
                location = resp.headers.get("location")
                if not location:
                    raise app_error(APP_NON200, "redirect without location")
                log.debug("Redirected to %s", location)
                url, data = location, None
                continue
            if resp.status != 200:
                log.error("HTTP status was NOT 200 but instead %d", resp.status)
                raise app_error(
                    APP_TOO_LARGE if resp.status == 413 else APP_NON200
                )
            return resp.body

    def _request_json(
        self,
        url: str,
        check: Callable[[Any], bool],
        method: str = "GET",
        data: Optional[bytes] = None,
    ) -> Any:
        body = self.request(url, method, data)
        try:
            doc = json.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise app_error(APP_JSON_FAIL) from exc
        status = _get(doc, "status", _is_object)
        code = _get(status, "code", _is_number)
        if code != 0:
            message = _get(doc, "error_message", _is_string)
            log.error("API Error: %s (%08X)", message, int(code) & 0xFFFFFFFF)
            raise app_error(APP_API_FAIL, message)
        return _get(doc, "value", check)

    def fetch_index(self) -> Index:
        return parse_index(self._request_json(f"{self.base_loc}/title-index", _is_object))

    def titles_in(self, cat: str, scat: str) -> list[Title]:
        url = f"{self.base_loc}/title/category/{cat}/{scat}"
        return parse_titles(self._request_json(url, _is_array))

    def title_meta(self, hid: int) -> FullTitle:
        return parse_full_title(
            self._request_json(f"{self.base_loc}/title/{hid}", _is_object)
        )

    def get_download_link(self, title: Title) -> str:
        value = self._request_json(
            f"{self.cdn_base}/content/{title.id}/request", _is_object
        )
        token = _get(value, "token", _is_string)
        return f"{self.cdn_base}/content/{title.id}?token={token}"

    def search(self, params: Mapping[str, str]) -> list[Title]:
        url = gen_url(f"{self.base_loc}/title/search", params)
        return parse_titles(self._request_json(url, _is_array))

    def random(self) -> FullTitle:
        return parse_full_title(
            self._request_json(f"{self.base_loc}/title/random", _is_object)
        )

    def upload_log(self, contents: bytes | str) -> str:
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        value = self._request_json(
            f"{self.site_loc}/log", _is_object, "POST", contents
        )
        return _get(value, "id", _is_string)

    def batch_related(self, tids: list[int]) -> dict[int, list[FullTitle]]:
        if not tids:
            return {}
        query = "&".join(f"title_ids={tid_to_str(tid)}" for tid in tids)
        url = f"{self.base_loc}/title/related/batch?{query}"
        value = self._request_json(url, _is_object)
        related: dict[int, list[FullTitle]] = {}
        for key, items in value.items():
            related.setdefault(str_to_tid(key), []).extend(_parse_full_titles(items))
        return related

    def get_latest_version_string(self) -> str:
        body = self.request(f"{self.update_base}/version")
        return body.decode("utf-8", "replace").strip(" \t\n")

    def get_by_title_id(self, title_id: str) -> list[Title]:
        url = f"{self.base_loc}/title/id/{title_id}"
        return parse_titles(self._request_json(url, _is_array))

    def get_theme_preview_png(self, hid: int) -> bytes:
        return self.request(f"{self.base_loc}/title/{hid}/theme-preview")

    def update_location(self, ver: str, device_id: Optional[str] = None) -> str:
        suffix = f"-{device_id}" if device_id is not None else ""
        return f"{self.update_base}/3hs-{ver}{suffix}.cia"