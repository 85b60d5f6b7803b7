"""FastAPI web server exposing worktrees, git status and shell sessions."""

import asyncio
import logging
import webbrowser
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..auth.service import AuthService
from ..core.config import ServerConfig
from ..git import (
    GitOperationError,
    add_worktree,
    get_git_diff,
    get_git_diff_staged,
    get_git_status,
    get_git_version,
    is_git_available,
    list_worktrees,
    remove_worktree,
)
from ..shells.manager import ShellManager, ShellSessionError
from ..utils.subprocess_utils import SubprocessError
from ..utils.validators import validate_path_param
from ..workspace.directories import list_directories, validate_path
from .models import (
    AddWorktreeRequest,
    ConfigResponse,
    CreateShellRequest,
    DeviceData,
    DiffRequest,
    DiffResponse,
    DirectoriesResponse,
    DirectoryEntryData,
    GitStatusData,
    HealthResponse,
    PairDeviceRequest,
    PairingData,
    PathValidationData,
    PathValidationResponse,
    ProjectPathRequest,
    RemoveWorktreeRequest,
    ShellSessionData,
    SuccessResponse,
    WorktreeAddResponse,
    WorktreeData,
    WorktreePathRequest,
    WorktreeRemoveResponse,
)

logger = logging.getLogger(__name__)


def create_app(
    config: ServerConfig,
    shell_manager: Optional[ShellManager] = None,
    auth_service: Optional[AuthService] = None,
) -> FastAPI:
    """Create FastAPI application with all routes."""
    shell_manager = shell_manager or ShellManager(shell=config.shell)
    auth_service = auth_service or AuthService(
        pairing_ttl_seconds=config.pairing_ttl_seconds,
        host=config.public_host,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Shells must not outlive the server
        await app.state.shell_manager.terminate_all()

    app = FastAPI(
        title="VibeTree",
        description="Git worktree manager with attached shell sessions",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS for development (Vite runs on different port)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store in app state
    app.state.config = config
    app.state.shell_manager = shell_manager
    app.state.auth_service = auth_service
    app.state.start_time = datetime.now(timezone.utc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content)

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI):
    """Register all API routes."""

    def git_timeout() -> float:
        return app.state.config.git_timeout

    # ============== Server ==============

    @app.get("/api/config", response_model=ConfigResponse)
    async def get_config():
        """Get server configuration."""
        return ConfigResponse(
            project_path=str(app.state.config.project_path),
            version=__version__,
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def get_health():
        """Report whether git can be run."""
        available = await is_git_available(timeout=git_timeout())
        version = None
        if available:
            try:
                version = await get_git_version(timeout=git_timeout())
            except SubprocessError as e:
                logger.warning(f"Could not read git version: {e}")

        uptime = (datetime.now(timezone.utc) - app.state.start_time).total_seconds()
        return HealthResponse(
            status="ok" if available else "degraded",
            git_available=available,
            git_version=version,
            uptime_seconds=int(uptime),
        )

    # ============== Pairing and devices ==============

    @app.get("/api/auth/qr", response_model=PairingData)
    async def get_pairing_qr():
        """Issue a pairing token and the URL to encode as a QR code."""
        try:
            pairing = app.state.auth_service.generate_pairing(app.state.config.port)
        except Exception as e:
            logger.exception(f"Error generating pairing token: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate QR code")
        return PairingData(
            token=pairing.token,
            url=pairing.url,
            expires_at=pairing.expires_at,
        )

    @app.post("/api/auth/pair", response_model=DeviceData)
    async def pair_device(request: PairDeviceRequest):
        """Exchange a pairing token for a device entry."""
        device = app.state.auth_service.pair_device(request.token, request.device_name)
        if device is None:
            raise HTTPException(status_code=401, detail="Invalid or expired pairing token")
        return _device_data(device)

    @app.get("/api/devices", response_model=list[DeviceData])
    async def get_devices():
        """List connected devices."""
        return [_device_data(d) for d in app.state.auth_service.get_connected_devices()]

    @app.delete("/api/devices/{device_id}", response_model=SuccessResponse)
    async def disconnect_device(device_id: str):
        """Disconnect a device."""
        if not app.state.auth_service.disconnect_device(device_id):
            raise HTTPException(status_code=404, detail="Device not found")
        return SuccessResponse(success=True)

    # ============== Shell sessions ==============

    @app.get("/api/shells", response_model=list[ShellSessionData])
    async def get_shells():
        """List active shell sessions."""
        return [_session_data(s) for s in app.state.shell_manager.get_all_sessions()]

    @app.post("/api/shells", response_model=ShellSessionData)
    async def create_shell(request: CreateShellRequest):
        """Start a shell session in a worktree."""
        try:
            session = await app.state.shell_manager.create_session(request.worktree_path)
        except ShellSessionError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _session_data(session)

    @app.delete("/api/shells/{session_id}", response_model=SuccessResponse)
    async def terminate_shell(session_id: str):
        """Terminate a shell session."""
        if not await app.state.shell_manager.terminate_session(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return SuccessResponse(success=True)

    # ============== Git ==============

    @app.post("/api/git/worktrees", response_model=list[WorktreeData])
    async def get_worktrees(request: ProjectPathRequest):
        """List the worktrees of a project."""
        try:
            worktrees = await list_worktrees(request.project_path, timeout=git_timeout())
        except SubprocessError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return [WorktreeData(**w.to_dict()) for w in worktrees]

    @app.post("/api/git/status", response_model=list[GitStatusData])
    async def get_status(request: WorktreePathRequest):
        """Changed files in a worktree."""
        try:
            entries = await get_git_status(request.worktree_path, timeout=git_timeout())
        except SubprocessError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return [GitStatusData(**entry.to_dict()) for entry in entries]

    @app.post("/api/git/diff", response_model=DiffResponse)
    async def get_diff(request: DiffRequest):
        """Unstaged (or staged) diff of a worktree or one of its files."""
        diff_fn = get_git_diff_staged if request.staged else get_git_diff
        try:
            diff = await diff_fn(request.worktree_path, request.file_path, timeout=git_timeout())
        except SubprocessError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return DiffResponse(diff=diff)

    @app.post("/api/git/worktree/add", response_model=WorktreeAddResponse)
    async def create_worktree(request: AddWorktreeRequest):
        """Create a branch and a worktree next to the project."""
        try:
            result = await add_worktree(
                request.project_path, request.branch_name, timeout=git_timeout()
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SubprocessError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return WorktreeAddResponse(path=result.path, branch=result.branch)

    @app.delete("/api/git/worktree", response_model=WorktreeRemoveResponse)
    async def delete_worktree(request: RemoveWorktreeRequest):
        """Remove a worktree and delete its branch."""
        try:
            result = await remove_worktree(
                request.project_path,
                request.worktree_path,
                request.branch_name,
                timeout=git_timeout(),
            )
        except GitOperationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return WorktreeRemoveResponse(success=result.success, warning=result.warning)

    # ============== Directories ==============

    @app.get("/api/directories", response_model=DirectoriesResponse)
    async def get_directories(path: Optional[str] = Query(default=None)):
        """List subdirectories for project selection."""
        try:
            path = validate_path_param(path)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            validation = validate_path(path)
            directories = list_directories(path) if validation.valid else None
        except Exception as e:
            logger.exception(f"Directory listing error: {e}")
            raise HTTPException(status_code=500, detail="Directory operation failed")

        if not validation.valid:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Invalid path",
                    "details": validation.error or "Path is not accessible",
                },
            )

        return DirectoriesResponse(
            path=path,
            directories=[DirectoryEntryData(**d.to_dict()) for d in directories],
            success=True,
        )

    @app.get("/api/directories/validate", response_model=PathValidationResponse)
    async def get_path_validation(path: Optional[str] = Query(default=None)):
        """Validate a directory path."""
        try:
            path = validate_path_param(path)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            validation = validate_path(path)
        except Exception as e:
            logger.exception(f"Path validation error: {e}")
            raise HTTPException(status_code=500, detail="Path validation failed")

        return PathValidationResponse(
            path=path,
            validation=PathValidationData(**validation.to_dict()),
            success=True,
        )

    # ============== WebSocket ==============

    @app.websocket("/ws/shell")
    async def shell_stream(
        websocket: WebSocket,
        worktree_path: str = Query(alias="worktreePath"),
    ):
        """Attach to a new shell session.

        The first message is ``{"type": "session", "id": ...}``; after that,
        text frames from the client go to the shell's stdin and shell output
        comes back as text frames. The session ends with the connection.
        """
        await websocket.accept()
        shell_manager: ShellManager = app.state.shell_manager

        try:
            session = await shell_manager.create_session(worktree_path)
        except ShellSessionError as e:
            await websocket.send_json({"type": "error", "error": str(e)})
            await websocket.close(code=1011)
            return

        logger.info(f"Shell WebSocket client attached to session {session.id}")
        await websocket.send_json({"type": "session", "id": session.id})

        async def pump_output():
            async for chunk in shell_manager.read(session.id):
                await websocket.send_text(chunk)

        async def pump_input():
            while True:
                data = await websocket.receive_text()
                await shell_manager.write(session.id, data)

        output_task = asyncio.create_task(pump_output())
        input_task = asyncio.create_task(pump_input())
        try:
            done, pending = await asyncio.wait(
                {output_task, input_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()
            for task in done:
                error = task.exception()
                if error is not None and not isinstance(error, WebSocketDisconnect):
                    logger.error(f"Shell WebSocket error in session {session.id}: {error}")

            if output_task in done:
                # Shell exited; let the client know by closing
                try:
                    await websocket.close()
                except RuntimeError:
                    pass
        finally:
            await shell_manager.terminate_session(session.id)
            logger.info(f"Shell WebSocket client detached from session {session.id}")

    @app.websocket("/ws/worktrees")
    async def worktree_stream(
        websocket: WebSocket,
        project_path: Optional[str] = Query(default=None, alias="projectPath"),
    ):
        """Push the project's worktree list at a fixed interval."""
        await websocket.accept()
        logger.info("Worktree WebSocket client connected")
        project = project_path or str(app.state.config.project_path)

        try:
            while True:
                try:
                    worktrees = await list_worktrees(project, timeout=git_timeout())
                    payload = {
                        "type": "worktrees",
                        "worktrees": [
                            WorktreeData(**w.to_dict()).model_dump(mode="json", by_alias=True)
                            for w in worktrees
                        ],
                    }
                except SubprocessError as e:
                    payload = {"type": "error", "error": str(e)}

                await websocket.send_json(payload)
                await asyncio.sleep(app.state.config.worktree_poll_interval)

        except WebSocketDisconnect:
            logger.info("Worktree WebSocket client disconnected")
        except Exception as e:
            logger.error(f"Worktree WebSocket error: {e}")


def _session_data(session) -> ShellSessionData:
    return ShellSessionData(
        id=session.id,
        worktree_path=session.worktree_path,
        created_at=session.created_at,
        last_activity=session.last_activity,
    )


def _device_data(device) -> DeviceData:
    return DeviceData(
        id=device.id,
        name=device.name,
        paired_at=device.paired_at,
        last_seen=device.last_seen,
    )


def run_server(config: ServerConfig, open_browser: bool = False):
    """Run the API server.

    Args:
        config: Server configuration
        open_browser: Open the API docs in a browser once started
    """
    import uvicorn

    app = create_app(config)

    url = f"http://localhost:{config.port}"
    logger.info(f"Starting VibeTree server at {url} for project {config.project_path}")

    if open_browser:
        # Open browser after slight delay
        import threading

        def open_browser_delayed():
            import time
            time.sleep(1)
            webbrowser.open(f"{url}/docs")

        threading.Thread(target=open_browser_delayed, daemon=True).start()

    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
