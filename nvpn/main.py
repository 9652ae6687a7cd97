import threading
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from .logging_utility import logger
from .vpn.config_store import ConfigStore, LoadMode, default_config_path
from .vpn.exceptions import ConfigMissing, ConnectionError, VPNError
from .vpn.manager import ConnectionManager


app = FastAPI(title="nvpn")
# Sync endpoints run on a thread pool; only one nmcli action at a time
_action_lock = threading.Lock()

LOCAL_HOSTS = {"127.0.0.1", "localhost", "::1"}


class StateResponse(BaseModel):
    connection: str
    state: str


class ActionResponse(BaseModel):
    status: str
    state: str


def get_manager() -> ConnectionManager:
    try:
        return ConnectionManager.from_store(ConfigStore(default_config_path()), LoadMode.STRICT)
    except ConfigMissing as e:
        logger.error(f"Configuration missing: {str(e)}")
        raise HTTPException(status_code=404, detail="nvpn is not configured, run `nvpn init`")
    except VPNError as e:
        logger.error(f"Error loading configuration: {str(e)}")
        raise HTTPException(status_code=500, detail="Invalid nvpn configuration")


def require_local_origin(origin: Optional[str] = Header(default=None)):
    """Refuse browser requests coming from pages served by other hosts.

    Clients without an Origin header (curl, scripts) are allowed.
    """
    if origin is None:
        return
    try:
        hostname = urlsplit(origin).hostname
    except ValueError:
        hostname = None
    if hostname not in LOCAL_HOSTS:
        logger.warning(f"Rejected request from origin {origin}")
        raise HTTPException(status_code=403, detail="Cross-origin requests are not allowed")


def _raise_http(action: str, e: VPNError):
    logger.error(f"Error during {action}: {str(e)}")
    if isinstance(e, ConnectionError):
        raise HTTPException(status_code=502, detail=f"Failed to {action} VPN connection")
    raise HTTPException(status_code=500, detail=f"Failed to {action} VPN connection")


@app.get("/status", response_model=StateResponse)
def get_status(manager: ConnectionManager = Depends(get_manager)):
    """Current state of the configured connection"""
    state = manager.get_state()
    return {"connection": manager.connection_name, "state": state.value}


@app.post("/toggle", response_model=ActionResponse, dependencies=[Depends(require_local_origin)])
def toggle(manager: ConnectionManager = Depends(get_manager)):
    """Connect if disconnected, disconnect if connected"""
    with _action_lock:
        try:
            state = manager.toggle()
        except VPNError as e:
            _raise_http("toggle", e)
    return {"status": "success", "state": state.value}


@app.post("/connect", response_model=ActionResponse, dependencies=[Depends(require_local_origin)])
def connect(manager: ConnectionManager = Depends(get_manager)):
    """Connect unless the connection is already active"""
    with _action_lock:
        try:
            changed = manager.connect()
        except VPNError as e:
            _raise_http("connect", e)
    return {"status": "success" if changed else "unchanged", "state": "active"}


@app.post("/disconnect", response_model=ActionResponse, dependencies=[Depends(require_local_origin)])
def disconnect(manager: ConnectionManager = Depends(get_manager)):
    """Disconnect unless the connection is already inactive"""
    with _action_lock:
        try:
            changed = manager.disconnect()
        except VPNError as e:
            _raise_http("disconnect", e)
    return {"status": "success" if changed else "unchanged", "state": "inactive"}
