import json

import pytest

from hsclient.errors import (
    APP_API_FAIL,
    APP_JSON_FAIL,
    APP_NON200,
    APP_TITLE_UNLISTED,
    APP_TOO_LARGE,
    RM_APPLICATION,
    HShopError,
)
from hsclient.hsapi import (
    VC_SHIFT,
    Client,
    FullTitle,
    Response,
    TitleFlag,
    VCType,
    gen_url,
    parse_full_title,
    parse_index,
    parse_title,
    parse_titles,
    parse_vstring,
    str_to_tid,
    tid_to_str,
    url_encode,
)
from hsclient.version import USER_AGENT

BASE = "https://api.example.com/api"
CDN = "https://cdn.example.com"
SITE = "https://site.example.com"
UPDATE = "https://update.example.com"


class FakeTransport:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, url, method, headers, data):
        self.calls.append((url, method, dict(headers), data))
        return self.routes[url]


def ok(value):
    body = json.dumps({"status": {"code": 0}, "value": value}).encode()
    return Response(200, {}, body)


def title_json(**over):
    data = {
        "size": 1024,
        "download_count": 5,
        "id": 42,
        "title_id": "0004000000123400",
        "category": "games",
        "subcategory": "europe",
        "name": "Sample",
        "flags": 0,
        "is_listed": True,
    }
    data.update(over)
    return data


def full_json(**over):
    data = title_json(product_code="CTR-P-ABCD", version=16)
    data.update(over)
    return data


def make_client(routes):
    transport = FakeTransport(routes)
    return Client(BASE, CDN, SITE, UPDATE, transport), transport


def assert_app_error(excinfo, description):
    assert excinfo.value.info.module == RM_APPLICATION
    assert excinfo.value.info.description == description


def test_url_encode_space_and_utf8():
    assert url_encode("a b") == "a%20b"
    assert url_encode("\u00e9") == "%C3%A9"


def test_url_encode_keeps_unreserved():
    text = "AZaz09.-_~"
    assert url_encode(text) == text


def test_gen_url():
    assert gen_url(BASE, {}) == BASE
    assert gen_url(BASE, {"q": "x y", "cat": "games"}) == BASE + "?q=x%20y&cat=games"


def test_parse_vstring():
    assert parse_vstring(0) == "v0.0.0"
    assert parse_vstring((1 << 10) | (2 << 4) | 3) == "v1.2.3"


def test_tid_round_trip():
    tid = 0x0004000000123400
    assert tid_to_str(tid) == "0004000000123400"
    assert str_to_tid(tid_to_str(tid)) == tid
    assert str_to_tid("zz") == 0


def test_parse_title_fields():
    title = parse_title(title_json(alternative_name="Alt"))
    assert title.id == 42
    assert title.tid == str_to_tid("0004000000123400")
    assert title.name == "Sample"
    assert title.alt == "Alt"
    assert title.cat == "games"


def test_parse_title_vc_prefix():
    flags = VCType.gba << VC_SHIFT
    title = parse_title(title_json(flags=flags, alternative_name="Alt"))
    assert title.name == "[GBA] Sample"
    assert title.alt == "[GBA] Alt"
    assert title.vc_type is VCType.gba


def test_parse_title_no_prefix_for_empty_alt():
    title = parse_title(title_json(flags=VCType.snes << VC_SHIFT))
    assert title.name == "[SNES] Sample"
    assert title.alt == ""


def test_parse_title_missing_prop():
    data = title_json()
    del data["name"]
    with pytest.raises(HShopError) as excinfo:
        parse_title(data)
    assert_app_error(excinfo, APP_JSON_FAIL)


def test_parse_title_wrong_type():
    with pytest.raises(HShopError) as excinfo:
        parse_title(title_json(size=-1))
    assert_app_error(excinfo, APP_JSON_FAIL)


def test_parse_titles_skips_unlisted():
    titles = parse_titles([title_json(id=1), title_json(id=2, is_listed=False), {"id": 3}])
    assert [t.id for t in titles] == [1]


def test_parse_full_title():
    title = parse_full_title(full_json(seed="00"))
    assert isinstance(title, FullTitle)
    assert title.prod == "CTR-P-ABCD"
    assert title.version == 16
    assert title.seed == "00"


def test_parse_full_title_unlisted():
    with pytest.raises(HShopError) as excinfo:
        parse_full_title(full_json(is_listed=False))
    assert_app_error(excinfo, APP_TITLE_UNLISTED)


def index_json():
    sub = {"display_name": "Europe", "description": "d", "total_content_count": 3, "size": 30}
    return {
        "total_content_count": 3,
        "size": 30,
        "entries": {
            "games": {
                "total_content_count": 3,
                "display_name": "Games",
                "description": "All games",
                "priority": 1,
                "size": 30,
                "subcategories": {"europe": sub},
            },
            "themes": {
                "total_content_count": 0,
                "display_name": "Themes",
                "description": "All themes",
                "priority": 5,
                "size": 0,
                "subcategories": {},
            },
        },
    }


def test_parse_index_and_find():
    index = parse_index(index_json())
    assert index.titles == 3
    games = index.find("Games")
    assert games is index.find("games")
    assert games.find("Europe").name == "europe"
    assert games.find("europe").cat == "games"
    assert index.find("missing") is None
    assert games.find("missing") is None


def test_parse_index_missing_entries():
    data = index_json()
    del data["entries"]
    with pytest.raises(HShopError) as excinfo:
        parse_index(data)
    assert_app_error(excinfo, APP_JSON_FAIL)


def test_fetch_index_sends_user_agent():
    client, transport = make_client({BASE + "/title-index": ok(index_json())})
    index = client.fetch_index()
    assert {c.name for c in index.categories} == {"games", "themes"}
    assert transport.calls[0][2]["User-Agent"] == USER_AGENT


def test_redirect_followed_and_post_data_dropped():
    target = SITE + "/moved"
    client, transport = make_client({
        SITE + "/log": Response(302, {"location": target}, b""),
        target: ok({"id": "abc"}),
    })
    assert client.upload_log("log text") == "abc"
    assert transport.calls[0][1] == "POST"
    assert transport.calls[0][3] == b"log text"
    assert transport.calls[1][0] == target
    assert transport.calls[1][3] is None


@pytest.mark.parametrize("status,description", [(404, APP_NON200), (413, APP_TOO_LARGE)])
def test_bad_status(status, description):
    client, _ = make_client({BASE + "/title/random": Response(status, {}, b"")})
    with pytest.raises(HShopError) as excinfo:
        client.random()
    assert_app_error(excinfo, description)


def test_api_error():
    body = json.dumps({"status": {"code": 3}, "error_message": "nope"}).encode()
    client, _ = make_client({BASE + "/title/7": Response(200, {}, body)})
    with pytest.raises(HShopError) as excinfo:
        client.title_meta(7)
    assert_app_error(excinfo, APP_API_FAIL)


def test_invalid_json():
    client, _ = make_client({BASE + "/title/7": Response(200, {}, b"{not json")})
    with pytest.raises(HShopError) as excinfo:
        client.title_meta(7)
    assert_app_error(excinfo, APP_JSON_FAIL)


def test_value_type_checked():
    client, _ = make_client({BASE + "/title/category/games/europe": ok({"a": 1})})
    with pytest.raises(HShopError) as excinfo:
        client.titles_in("games", "europe")
    assert_app_error(excinfo, APP_JSON_FAIL)


def test_titles_in_and_search():
    client, transport = make_client({
        BASE + "/title/category/games/europe": ok([title_json(id=9)]),
        BASE + "/title/search?q=mario%20kart": ok([title_json(id=10)]),
    })
    assert [t.id for t in client.titles_in("games", "europe")] == [9]
    assert [t.id for t in client.search({"q": "mario kart"})] == [10]
    assert len(transport.calls) == 2


def test_get_download_link():
    client, _ = make_client({CDN + "/content/42/request": ok({"token": "token"})})
    title = parse_title(title_json())
    assert client.get_download_link(title) == CDN + "/content/42?token=token"


def test_batch_related():
    tid = 0x0004000000123400
    url = BASE + "/title/related/batch?title_ids=0004000000123400&title_ids=0004000000ABCD00"
    client, _ = make_client({
        url: ok({tid_to_str(tid): [full_json(id=1), full_json(id=2, is_listed=False)]}),
    })
    related = client.batch_related([tid, 0x0004000000ABCD00])
    assert list(related) == [tid]
    assert [t.id for t in related[tid]] == [1]


def test_batch_related_empty_makes_no_request():
    client, transport = make_client({})
    assert client.batch_related([]) == {}
    assert transport.calls == []


def test_latest_version_string_trimmed():
    client, _ = make_client({UPDATE + "/version": Response(200, {}, b" 1.3.7\n")})
    assert client.get_latest_version_string() == "1.3.7"


def test_theme_preview_raw_bytes():
    client, _ = make_client({BASE + "/title/5/theme-preview": Response(200, {}, b"\x89PNG")})
    assert client.get_theme_preview_png(5) == b"\x89PNG"


def test_get_by_title_id():
    client, _ = make_client({BASE + "/title/id/0004000000123400": ok([title_json()])})
    titles = client.get_by_title_id("0004000000123400")
    assert titles[0].tid == 0x0004000000123400


def test_update_location():
    client, _ = make_client({})
    assert client.update_location("1.3.7") == UPDATE + "/3hs-1.3.7.cia"
    assert client.update_location("1.3.7", "dev") == UPDATE + "/3hs-1.3.7-dev.cia"


def test_parsed_title_keeps_flags():
    title = parse_title(title_json(flags=TitleFlag.is_ktr.value))
    assert title.flags == TitleFlag.is_ktr.value
    assert bool(title.flags & TitleFlag.is_ktr) is True
    assert bool(title.flags & TitleFlag.installer) is False