from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from pydantic import BaseModel

from playercipher.cipher.base import StreamFormat
from playercipher.cipher.errors import CipherError, NetworkError
from playercipher.cipher.manager import CipherManager
from playercipher.config import configure_logging

_manager: Optional[CipherManager] = None


def get_manager() -> CipherManager:
    global _manager
    if _manager is None:
        _manager = CipherManager()
    return _manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield
    if _manager is not None:
        await _manager.close()


app = FastAPI(title="Player Cipher", lifespan=lifespan)


class ScriptRequest(BaseModel):
    script_url: str


class ResolveRequest(BaseModel):
    script_url: str
    url: str
    signature: Optional[str] = None
    signature_key: Optional[str] = None
    n_parameter: Optional[str] = None


# --- 1. CACHE ADMIN ---

@app.get("/cipher/stats")
async def cache_stats(manager: CipherManager = Depends(get_manager)):
    stats = await manager.get_cache_stats()
    return stats.to_dict()


@app.post("/cipher/cleanup")
async def cleanup(manager: CipherManager = Depends(get_manager)):
    evicted = await manager.cleanup_cache()
    stats = await manager.get_cache_stats()
    return {"evicted": evicted, "stats": stats.to_dict()}


@app.post("/cipher/refresh")
async def refresh(body: ScriptRequest, manager: CipherManager = Depends(get_manager)):
    try:
        cipher = await manager.refresh_script(body.script_url)
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except CipherError as e:
        # script fetched but unusable; a basic-only entry is cached
        raise HTTPException(status_code=422, detail=str(e))
    return {"script_url": body.script_url, "timestamp": cipher.timestamp}


# --- 2. RESOLUTION ---

@app.post("/cipher/resolve")
async def resolve(body: ResolveRequest, manager: CipherManager = Depends(get_manager)):
    fmt = StreamFormat(
        url=body.url,
        signature=body.signature,
        signature_key=body.signature_key,
        n_parameter=body.n_parameter,
    )
    try:
        url = await manager.resolve_format_url(body.script_url, fmt)
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"url": url}
