"""
============================================================================
TRICKLE MONITOR - HTTP FRONT DOOR & TRICKLE RESPONDER
============================================================================
A small aiohttp server with two exact-match GET routes:

    GET /trickle   → TrickleResponder: ``byte_count`` bytes, one every
                     ``byte_interval`` seconds, then end of stream
    GET /log       → the StatusLog, one "<epoch>: UP|DOWN" line per
                     entry, oldest first
    anything else  → 404

Each connection is served by its own task on the event loop, so a slow
trickle stream never holds up another stream or a log read. The
responder is the remote end of the check protocol: a peer's monitor
probes this endpoint, and ours probes theirs.
============================================================================
"""

import asyncio
from typing import Awaitable, Callable, Optional

from aiohttp import web

from config.constants import ContentTypes
from config.settings import Settings, TrickleSettings
from exceptions.base import ListenerBindError
from monitoring.status_log import StatusLog
from utils.logger import get_logger


logger = get_logger("FrontDoor")

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


# ============================================================================
# TRICKLE RESPONDER
# ============================================================================

class TrickleResponder:
    """
    Emits the slow, fixed-length byte stream the check protocol is
    calibrated against. Consumes nothing from the request.
    """

    def __init__(self, trickle: TrickleSettings):
        self.byte_count = trickle.byte_count
        self.byte_interval = trickle.byte_interval
        self.payload = trickle.payload_byte.encode("ascii")
        self.active_streams = 0

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """GET /trickle - stream the payload byte by byte."""
        response = web.StreamResponse(
            status=200,
            headers={"Content-Type": ContentTypes.OCTET_STREAM},
        )
        response.content_length = self.byte_count
        await response.prepare(request)

        self.active_streams += 1
        peer = request.remote
        logger.debug(f"[Trickle] Stream to {peer} started")
        try:
            for _ in range(self.byte_count):
                await response.write(self.payload)
                await asyncio.sleep(self.byte_interval)
            await response.write_eof()
            logger.debug(f"[Trickle] Stream to {peer} finished")
        except ConnectionResetError:
            logger.debug(f"[Trickle] {peer} went away mid-stream")
        finally:
            self.active_streams -= 1
        return response


# ============================================================================
# FRONT DOOR
# ============================================================================

@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """
    Keep failures local to the connection they happened on.

    Wrong methods on a known path get the same 404 as unknown paths.
    """
    try:
        return await handler(request)
    except web.HTTPMethodNotAllowed:
        raise web.HTTPNotFound()
    except web.HTTPException:
        raise
    except (asyncio.CancelledError, ConnectionResetError):
        raise
    except Exception as e:
        logger.exception(
            f"[FrontDoor] Error handling {request.method} {request.path}: {e}"
        )
        raise web.HTTPInternalServerError()


class FrontDoor:
    """
    aiohttp application serving the trickle responder and the log dump.

    Attributes
    ----------
    app : aiohttp.web.Application
    responder : TrickleResponder
    status_log : StatusLog
    """

    def __init__(self, settings: Settings, status_log: StatusLog):
        self.settings = settings
        self.status_log = status_log
        self.responder = TrickleResponder(settings.trickle)
        self._host = settings.server.host
        self._port = settings.server.port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

        self.app = web.Application(middlewares=[error_middleware])
        self.app.router.add_get(
            settings.trickle.path, self.responder.handle, allow_head=False
        )
        self.app.router.add_get(
            settings.monitoring.log_path, self._handle_log, allow_head=False
        )

    async def start(self) -> None:
        """
        Bind and start serving.

        Raises
        ------
        ListenerBindError
            The port could not be bound.
        """
        self._runner = web.AppRunner(self.app, access_log=None)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        try:
            await self._site.start()
        except OSError as e:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            raise ListenerBindError.from_exception(
                e, f"Could not bind {self._host}:{self._port}: {e.strerror or e}"
            ).with_details(host=self._host, port=self._port)
        logger.info(f"✓ FrontDoor listening on {self._host}:{self._port}")

    async def stop(self) -> None:
        """Gracefully shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        logger.info("✓ FrontDoor stopped")

    # ------------------------------------------------------------------
    # ROUTE HANDLERS
    # ------------------------------------------------------------------

    async def _handle_log(self, request: web.Request) -> web.Response:
        """GET /log - status changes, oldest first."""
        return web.Response(text=self.status_log.render(), content_type=ContentTypes.TEXT)
