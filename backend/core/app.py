# core/app.py — App factory with dynamic module discovery
#
# Creates and configures the FastAPI application. Discovers all modules under
# backend/modules/, resolves load order from REQUIRES/IMPLEMENTS declarations,
# and calls each module's register(app, registry) function.
#
# main.py is: from core.app import create_app; app = create_app()

import asyncio
import hmac
import importlib
import logging
import pathlib
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import ShopError

log = logging.getLogger("shop.api")

# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

_version_file = pathlib.Path(__file__).parent.parent.parent / "VERSION"
if _version_file.exists():
    __version__ = _version_file.read_text().strip()
else:
    __version__ = "0.1.0"


# ---------------------------------------------------------------------------
# Module discovery helpers
# ---------------------------------------------------------------------------

def _discover_modules() -> list[str]:
    """Return a list of module package names found under backend/modules/.

    A valid module directory contains an __init__.py with a MODULE_ID attribute.
    """
    modules_dir = pathlib.Path(__file__).parent.parent / "modules"
    found = []
    for entry in sorted(modules_dir.iterdir()):
        if not entry.is_dir():
            continue
        if not (entry / "__init__.py").exists():
            continue
        pkg_name = f"modules.{entry.name}"
        try:
            mod = importlib.import_module(pkg_name)
            if hasattr(mod, "MODULE_ID"):
                found.append(pkg_name)
        except Exception as exc:
            log.warning(f"Module discovery: skipping {pkg_name!r}: {exc}")
    return found


def _resolve_load_order(pkg_names: list[str]) -> list[str]:
    """Topologically sort modules so that providers load before their consumers.

    Kahn's sort over the edges implied by REQUIRES -> IMPLEMENTS. Modules with
    circular or unresolvable deps load in discovery order at the end (with a
    warning) rather than crashing startup.
    """
    mods: dict[str, dict] = {}
    for pkg in pkg_names:
        m = importlib.import_module(pkg)
        mods[pkg] = {
            "implements": getattr(m, "IMPLEMENTS", []),
            "requires": getattr(m, "REQUIRES", []),
        }

    # interface -> providing pkg
    providers: dict[str, str] = {}
    for pkg, info in mods.items():
        for iface in info["implements"]:
            providers[iface] = pkg

    edges: dict[str, set[str]] = {pkg: set() for pkg in pkg_names}
    for pkg, info in mods.items():
        for iface in info["requires"]:
            provider_pkg = providers.get(iface)
            if provider_pkg and provider_pkg != pkg:
                edges[pkg].add(provider_pkg)

    in_degree: dict[str, int] = {pkg: len(deps) for pkg, deps in edges.items()}

    queue = sorted(pkg for pkg in pkg_names if in_degree[pkg] == 0)
    ordered: list[str] = []

    while queue:
        pkg = queue.pop(0)
        ordered.append(pkg)
        for other_pkg, deps in edges.items():
            if pkg in deps:
                in_degree[other_pkg] -= 1
                if in_degree[other_pkg] == 0:
                    queue.append(other_pkg)
                    queue.sort()

    remaining = [pkg for pkg in pkg_names if pkg not in ordered]
    if remaining:
        log.warning(
            f"Module load order: circular or unresolvable dependencies for "
            f"{remaining}; appending in discovery order."
        )
        ordered.extend(remaining)

    return ordered


# ---------------------------------------------------------------------------
# WebSocket manager
# ---------------------------------------------------------------------------

class ConnectionManager:
    """Manages active WebSocket connections."""

    def __init__(self):
        self.active: list[WebSocket] = []

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active.append(ws)

    def disconnect(self, ws: WebSocket):
        if ws in self.active:
            self.active.remove(ws)

    async def broadcast(self, message: dict):
        dead = []
        for ws in self.active:
            try:
                await ws.send_json(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)


class RealtimeRelay:
    """Forwards work-order events from the bus to /ws clients.

    Bus handlers run on whatever thread published (sync routes run in the
    threadpool), so events are handed to the loop through call_soon_threadsafe
    and drained by a single broadcaster task.
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = None
        self._task = None

    def handle(self, event) -> None:
        if self._loop is None:
            return
        message = {"type": event.event_type, "data": event.data}
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    async def _run(self):
        while True:
            message = await self._queue.get()
            await self.manager.broadcast(message)

    def start(self, bus) -> None:
        from core.events import REALTIME_PREFIX

        self._loop = asyncio.get_running_loop()
        bus.subscribe(f"{REALTIME_PREFIX}*", self.handle)
        self._task = asyncio.create_task(self._run())

    async def stop(self, bus) -> None:
        from core.events import REALTIME_PREFIX

        bus.unsubscribe(f"{REALTIME_PREFIX}*", self.handle)
        self._loop = None
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None


# ---------------------------------------------------------------------------
# Middleware and error handlers
# ---------------------------------------------------------------------------

def _setup_middleware(app: FastAPI) -> None:
    """Attach CORS middleware to the app."""
    from core.config import settings

    _cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if "*" in _cors_origins:
        log.warning(
            "CORS origin '*' is incompatible with allow_credentials=True; "
            "falling back to empty origins list. Set explicit origins in CORS_ORIGINS."
        )
        _cors_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-API-Key", "Accept"],
    )


def _install_error_handlers(app: FastAPI) -> None:
    """Map the core.errors hierarchy to JSON responses."""

    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        if exc.status_code >= 500:
            log.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(create_tables: bool = True) -> FastAPI:
    """Create and fully configure the ShopDesk FastAPI application.

    1. Discover all modules under backend/modules/.
    2. Resolve load order by REQUIRES/IMPLEMENTS declarations.
    3. Build a ModuleRegistry and call each module's register(app, registry)
       so routes exist before the first request arrives.
    4. Lifespan creates tables, validates dependencies, starts the health
       monitor and the realtime relay.

    Returns the fully configured app object. Uvicorn finds it via main:app.
    """
    from core.config import settings
    from core.db import engine, Base
    from core.auth import decode_token
    from core.event_bus import get_event_bus
    from core.registry import ModuleRegistry

    registry = ModuleRegistry()
    ws_manager = ConnectionManager()

    pkg_names = _discover_modules()
    ordered_pkgs = _resolve_load_order(pkg_names)

    log.info(f"Module load order: {[p.split('.')[-1] for p in ordered_pkgs]}")

    # -----------------------------------------------------------------------
    # Lifespan (DB init, dependency check, background services)
    # -----------------------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            Base.metadata.create_all(bind=engine)

        registry.validate_dependencies()

        bus = get_event_bus()
        relay = RealtimeRelay(ws_manager)
        relay.start(bus)

        monitor = getattr(app.state, "health_monitor", None)
        if monitor is not None:
            await monitor.start()

        if not settings.api_key:
            log.warning(
                "API_KEY is not set; only bearer tokens authenticate requests."
            )

        yield

        if monitor is not None:
            await monitor.stop()
        await relay.stop(bus)

    # -----------------------------------------------------------------------
    # FastAPI instance
    # -----------------------------------------------------------------------
    app = FastAPI(
        title="ShopDesk",
        description="Shop management: work orders, job lines, parts, catalog and email marketing",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.registry = registry
    app.state.ws_manager = ws_manager

    _setup_middleware(app)
    _install_error_handlers(app)

    # -----------------------------------------------------------------------
    # WebSocket endpoint
    # -----------------------------------------------------------------------
    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket, token: str = Query(default=None)):
        """
        Realtime feed of work-order changes.

        Requires a valid JWT (?token=...) or the perimeter API key as token.
        """
        authenticated = False
        if token:
            if decode_token(token):
                authenticated = True
            elif settings.api_key and hmac.compare_digest(token, settings.api_key):
                authenticated = True

        if not authenticated:
            await ws.close(code=4001, reason="Authentication required")
            return

        await ws_manager.connect(ws)
        try:
            while True:
                try:
                    data = await asyncio.wait_for(ws.receive_text(), timeout=30)
                    if data == "ping":
                        await ws.send_text("pong")
                except asyncio.TimeoutError:
                    try:
                        await ws.send_json({"type": "ping"})
                    except Exception:
                        break
        except WebSocketDisconnect:
            pass
        finally:
            ws_manager.disconnect(ws)

    # -----------------------------------------------------------------------
    # Module registration
    # -----------------------------------------------------------------------
    for pkg in ordered_pkgs:
        mod = importlib.import_module(pkg)
        registry.record_requires(
            getattr(mod, "MODULE_ID", pkg),
            getattr(mod, "REQUIRES", []),
        )
        if hasattr(mod, "register"):
            try:
                mod.register(app, registry)
                log.debug(f"Registered module: {pkg}")
            except Exception as exc:
                log.error(f"Failed to register module {pkg!r}: {exc}", exc_info=True)

    return app
