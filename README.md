# hsclient

A library for working with the hShop content catalogue.

It provides:

- **`hsclient.hsapi`**: the catalogue model (`Index`, `Category`,
  `Subcategory`, `Title`, `FullTitle`) and a `Client` for the hShop API.
  The client fetches the title index, lists titles in a category, searches,
  looks up related content in bulk, asks for download links, fetches theme
  previews and the latest version string, and uploads logs.
  Helpers cover URL building (`url_encode`, `gen_url`), title-id conversion
  (`tid_to_str`, `str_to_tid`) and version formatting (`parse_vstring`).
  The parsing functions (`parse_index`, `parse_title`, `parse_full_title`,
  `parse_titles`) can also be used on API replies you fetched yourself.
- **`hsclient.errors`**: decoding of 32-bit result codes into level, summary,
  module and description (`get_error`, `ErrorInfo`), building them
  (`make_result`), formatting (`pad8code`, `format_err`, `report_error`), and
  the `HShopError` exception that carries such a code.
- **`hsclient.version`**: the version constants and `make_user_agent`.
- **`hsclient.settings`**: the settings record with its packed flag word
  (`Settings`, `Flag0`, `SortMethod`, `SortDirection`, `LumaLocaleMode`).
- **`hsclient.i18n`**: the choice of a default interface language from the
  system language, country and province (`default_lang`, `Lang`,
  `SystemLanguage`).
- **`hsclient.imaging`**: pixel helpers for the console's tiled texture
  layout (`next_pow2`, `rgba_to_abgr`, `tile_abgr8`, `place_smdh_icon`).
- **`hsclient.templ`**: a small template language for web pages (`TemplRen`).
- **`hsclient.forwarder`**: installation of "file forwarder" content from its
  `config.ini` (`parse_forwarder_config`, `resolve_destination`,
  `install_forwarded_file`).

It needs nothing beyond the standard library.

## Talking to the catalogue

```python
from hsclient.hsapi import Client, parse_vstring

client = Client(
    base_loc="https://api.example.com/api",
    cdn_base="https://cdn.example.com",
    site_loc="https://site.example.com",
    update_base="https://update.example.com",
    transport=None,
)

index = client.fetch_index()
games = index.find("games")
print(games.disp, games.titles)

full = client.title_meta(1234)
print(full.name, parse_vstring(full.version))
```

With `transport=None` the client uses `urllib` and follows redirects itself.
The `transport` argument lets you supply your own way of performing HTTP
requests: a callable taking `(url, method, headers, data)` and returning a
`hsapi.Response`. That is also how the client is exercised in tests without a
network. A failed request or a malformed reply raises `HShopError`;
`get_error` turns its code into readable parts.

## Rendering templates

```python
from hsclient.templ import TemplRen

ren = TemplRen({"user-agent": "example"})
ren.use_default()
ren.use("title-name", "Example Game")
page = ren.finish("<h1>[title-name]</h1>")
```

Templates support `[symbol]` substitution, `[[if ...]]`, `[[else-if ...]]`,
`[[else]]`, `[[foreach name in list]]` and `[[end]]` blocks, and backslash
escapes. A failed render raises `TemplateError`, whose `result` is a
`TemplResult`.

## Installing forwarded files

`install_forwarded_file(config_text, read_file, sd_root)` reads the
destination and location from the config text, asks `read_file` for the
file's contents and writes them under `sd_root`. Reading the files out of the
package archive itself is left to the caller.

## What it does not do

- There is no server: nothing here listens for local control connections or
  serves the template pages over HTTP. `TemplRen` only renders text you give it.
- It does not install titles onto a device and has no user interface; the
  `Client` only talks to the web API.
- `Settings` is an in-memory record; nothing loads or saves it.
- There is no command-line program.

## Running the tests

Install the `test` extra and run pytest from the project directory.