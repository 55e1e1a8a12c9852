"""HTTP server that exposes log-channel files as streamable links."""

from __future__ import annotations

import logging
import re
import time

from aiohttp import web

from .cache import FileCache
from .config import Config
from .hashing import check_hash, pack_file
from .media import file_from_message
from .ranges import RangeError, parse_range
from .reader import TelegramReader
from .timefmt import format_uptime
from .types import RootResponse
from .workers import BotWorkers, NoWorkersError

log = logging.getLogger("filestreambot.server")

PHOTO_LIMIT = 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"

_MESSAGE_ID_RE = re.compile(r"[+-]?[0-9]+")


def _error(status: int, message: str) -> web.Response:
    return web.Response(
        status=status,
        text=f"{message}\n",
        headers={"X-Content-Type-Options": "nosniff"},
    )


def create_app(config: Config, workers: BotWorkers, cache: FileCache, version: str) -> web.Application:
    """Build the web application with the status and stream routes."""
    started_at = time.monotonic()

    async def root(request: web.Request) -> web.Response:
        uptime = format_uptime(int(time.monotonic() - started_at))
        return web.json_response(RootResponse("Server is running.", True, uptime, version).to_dict())

    async def stream(request: web.Request) -> web.StreamResponse:
        raw_id = request.match_info["messageID"]
        if not _MESSAGE_ID_RE.fullmatch(raw_id):
            return _error(400, f'invalid message ID "{raw_id}"')
        message_id = int(raw_id)

        auth_hash = request.query.get("hash", "")
        if not auth_hash:
            return _error(400, "missing hash param")

        try:
            worker = workers.next_worker()
        except NoWorkersError as exc:
            return _error(500, str(exc))

        try:
            file = await file_from_message(worker.client, message_id, cache)
        except Exception as exc:
            return _error(400, str(exc))

        expected = pack_file(file.file_name, file.file_size, file.mime_type, file.id)
        if not check_hash(auth_hash, expected, config.hash_length):
            return _error(400, "invalid hash")

        if file.file_size == 0:
            try:
                data = await worker.client.get_file(file.location, 0, PHOTO_LIMIT)
            except Exception as exc:
                return _error(500, str(exc))
            if not isinstance(data, (bytes, bytearray)):
                return _error(500, "unexpected response")
            headers = {"Content-Disposition": f'inline; filename="{file.file_name}"'}
            if request.method == "HEAD":
                return web.Response(headers=headers)
            headers["Content-Type"] = file.mime_type
            return web.Response(body=bytes(data), headers=headers)

        headers = {"Accept-Ranges": "bytes"}
        range_header = request.headers.get("Range", "")
        if range_header:
            try:
                first = parse_range(file.file_size, range_header)[0]
            except RangeError as exc:
                return _error(400, str(exc))
            start, end = first.start, first.end
            headers["Content-Range"] = f"bytes {start}-{end}/{file.file_size}"
            log.info("Content-Range start=%d end=%d fileSize=%d", start, end, file.file_size)
            status = 206
        else:
            start, end = 0, file.file_size - 1
            status = 200

        content_length = end - start + 1
        disposition = "attachment" if request.query.get("d") == "true" else "inline"
        headers["Content-Type"] = file.mime_type or DEFAULT_MIME_TYPE
        headers["Content-Disposition"] = f'{disposition}; filename="{file.file_name}"'

        response = web.StreamResponse(status=status, headers=headers)
        response.content_length = content_length
        await response.prepare(request)
        if request.method != "HEAD":

            async def fetch(offset: int, limit: int) -> bytes:
                return await worker.client.get_file(file.location, offset, limit)

            reader = TelegramReader(fetch, start, end, content_length)
            try:
                async for chunk in reader:
                    await response.write(chunk)
            except Exception:
                log.exception("Error while copying stream")
        return response

    app = web.Application()
    app.router.add_get("/", root)
    app.router.add_get("/stream/{messageID}", stream)
    log.info("Loaded all API Routes")
    return app