# filestreambot

Building blocks for an HTTP server that gives Telegram media direct,
streamable links. A link has the form

    <HOST>/stream/<message id>?hash=<short hash>

Add `&d=true` to the link to download the file as an attachment. Without it
the file is served inline, so browsers and media players can stream it.

## The HTTP server

`filestreambot.server.create_app(config, workers, cache, version)` builds an
aiohttp `web.Application` with two routes:

- `GET /` returns JSON with `message` (`"Server is running."`), `ok`,
  `uptime` (for example `"1 hour, 1 minute, 1 second"`) and `version`.
- `GET /stream/{messageID}?hash=...` (and `HEAD`) serves the file of a
  log-channel message:
  - a non-numeric message id, a missing `hash` or a wrong hash gives `400`;
  - a `Range` header is parsed with `filestreambot.ranges.parse_range`; the
    first satisfiable range is served with `206` and a `Content-Range`
    header, and a malformed or unsatisfiable header gives `400`;
  - without a `Range` header the whole file is served with `200`;
  - `Accept-Ranges: bytes`, `Content-Type` (`application/octet-stream` when
    the file has none), `Content-Length` and `Content-Disposition` are set;
  - photos (files whose size is 0) are fetched in a single call of up to
    1 MiB and served inline as `image/jpeg`;
  - `HEAD` requests get the headers only.

The application expects its clients to be objects with:

- `self_id` — the id of the bot account;
- `username` — used when a worker is printed;
- `async get_message(message_id)` — the log-channel message, an object with a
  `media` attribute, or `None` when it was deleted;
- `async get_file(location, offset, limit)` — up to `limit` bytes of the file
  at `location`, starting at `offset`.

## Link hashes

`filestreambot.hashing.pack_file(file_name, file_size, mime_type, file_id)`
returns the MD5 hex digest of the four values written one after another
(`filestreambot.types.HashableFile.pack`). `get_short_hash(full_hash, length)`
keeps the first `length` characters, and `check_hash(input_hash,
expected_hash, length)` compares a link's hash with it.

## Media

`filestreambot.media` describes Telegram media with the dataclasses
`Document`, `Photo`, `PhotoSize`, `MessageMediaDocument` and
`MessageMediaPhoto`. `file_from_media(media)` turns one of them into a
`filestreambot.types.File`: a document keeps its name, size, MIME type and
id; a photo uses its last (largest) size, the name `photo_<id>.jpg` and a
size of 0. Anything else, an empty document or photo, or a photo without
usable sizes raises `MediaError`.

`file_from_message(client, message_id, cache)` looks the file up under the
key `file:<message id>:<client id>` and otherwise asks the client for the
message, storing the result for an hour.

## Cache

`filestreambot.cache.FileCache(capacity=10 MiB)` stores pickled copies of
`File` values. `set(key, value, expire_seconds)` gives an entry a lifetime
(0 or less means no expiry); when the capacity would be exceeded the oldest
entries are dropped. `get(key)` raises `CacheMiss` for absent or expired
keys; `delete(key)` removes a key.

## Chunked reader

`filestreambot.reader.TelegramReader(fetch_chunk, start, end,
content_length, chunk_size=1 MiB)` reads bytes `start` to `end` inclusive.
It calls `fetch_chunk(offset, limit)` with offsets that are multiples of
`chunk_size` and trims the first and last parts to the range. `read()`
returns the next part and `b""` once `content_length` bytes were read; it
raises `EOFError` when the data ends early. It can also be used with
`async for`.

## Worker bots

`filestreambot.workers.BotWorkers(client_factory, use_session_file=True,
sessions_dir="sessions", start_timeout=30.0)` holds the bot clients.

- `add_default_client(client)` adds an already started client.
- `await add(token)` calls `client_factory(token, worker_id, session_path,
  middleware)`. `session_path` is `sessions/worker-<id>.session`, or `None`
  when session files are not used. `middleware(call, *args, **kwargs)` runs an
  API call under a rate limit of 5 calls at once, then one every 100 ms. It
  retries a call, up to 10 times, when the call raises an exception with a
  `flood_wait_seconds` attribute, waiting that many seconds first.
- `await start(tokens)` starts a worker for every token at once, each within
  the timeout, and returns how many started.
- `next_worker()` hands the workers out in round-robin order and raises
  `NoWorkersError` when there are none.

## Bot replies

`filestreambot.links` holds what the bot answers:

- `start_reply(user_id, allowed_users)` gives the greeting, or a refusal when
  the user is not in a non-empty allow-list (`is_allowed`).
- `is_supported_media(media)` accepts only documents and photos.
- `build_stream_link(host, message_id, short_hash)` builds the link.
- `build_buttons(link, mime_type)` returns a **Download** button for every
  file. It adds a **Stream** button when the MIME type names video, audio or
  PDF.

```python
from filestreambot.timefmt import format_uptime
from filestreambot.links import build_stream_link

format_uptime(3661)        # "1 hour, 1 minute, 1 second"
format_uptime(90061)       # "1 day, 1 hour, 1 minute, 1 second"

build_stream_link("http://localhost:8080", 42, "abcdef")
# "http://localhost:8080/stream/42?hash=abcdef"
```

## Configuration

`filestreambot.config.load_config(overrides=None, environ=None,
env_file="fsb.env")` returns a `Config`. Values in the env file are used
unless the environment (`os.environ` when `environ` is `None`) sets them.
Truthy `overrides`, keyed by field name (`api_id`, `port`, `host`, ...), win
over both.

| Variable           | Required | Default | Field              |
|--------------------|----------|---------|--------------------|
| `API_ID`           | yes      |         | `api_id`           |
| `API_HASH`         | yes      |         | `api_hash`         |
| `BOT_TOKEN`        | yes      |         | `bot_token`        |
| `LOG_CHANNEL`      | yes      |         | `log_channel_id`   |
| `DEV`              | no       | `false` | `dev`              |
| `PORT`             | no       | `8080`  | `port`             |
| `HOST`             | no       |         | `host`             |
| `HASH_LENGTH`      | no       | `6`     | `hash_length`      |
| `USE_SESSION_FILE` | no       | `true`  | `use_session_file` |
| `USER_SESSION`     | no       |         | `user_session`     |
| `USE_PUBLIC_IP`    | no       | `false` | `use_public_ip`    |
| `ALLOWED_USERS`    | no       |         | `allowed_users`    |
| `MULTI_TOKEN<n>`   | no       |         | `multi_tokens`     |

- When `HOST` is unset it becomes `http://<ip>:<port>`. The IP is the local
  one, or the public one (looked up and checked for reachability on port 80)
  when `USE_PUBLIC_IP` is true. It falls back to `localhost` on failure.
- The sign and the first `100` are removed from `LOG_CHANNEL` (`strip_int`),
  so `-1001234` becomes `1234`.
- `HASH_LENGTH` is kept between 5 and 32: 0 or values below 5 become 6, and
  values above 32 become 32 (`normalize_hash_length`).
- `ALLOWED_USERS` is a comma-separated list of ids (`parse_allowed_users`).
- `MULTI_TOKEN<n>` values are gathered in order (`collect_multi_tokens`).

A missing required value or a value that cannot be parsed raises
`ConfigError`. An example `fsb.env`:

    API_ID=12345
    API_HASH=placeholder
    BOT_TOKEN=token
    LOG_CHANNEL=-1001234
    PORT=8080
    HASH_LENGTH=8
    MULTI_TOKEN1=token

## Session strings

`filestreambot.session_string.encode_pyrogram_session(data, app_id)` turns a
`SessionData` into an unpadded URL-safe base64 string session. A
`SessionData` holds the data centre, a 256-byte auth key, an 8-byte key id
and a test-mode flag. Wrong key lengths or an app id outside 32 bits raise
`ValueError`.

## Logging

`filestreambot.logger.init_logger(debug=False, log_dir="logs")` configures
the `filestreambot` logger. Console output goes to stdout at INFO level, or
DEBUG when `debug` is true. JSON lines at DEBUG level go to `app.log` in
`log_dir`, which rotates at 10 MB and keeps three gzip-compressed backups.

## What this package does not do

- It has no command-line program. Nothing here starts the server or the bot;
  you wire `load_config`, `BotWorkers`, `FileCache` and `create_app` together
  and run the aiohttp application yourself.
- It contains no Telegram client. The clients, and the `client_factory` that
  starts workers, must be supplied.
- It does not receive messages from users or forward files to the log
  channel. `filestreambot.links` only builds the texts, links and buttons for
  such replies.
- It cannot log in to create a session. It only encodes session data that you
  already have, and it does not use `USER_SESSION` to promote bots in the
  channel.

## Tests

The test suite uses pytest and pytest-asyncio, both listed in the `test`
extra.