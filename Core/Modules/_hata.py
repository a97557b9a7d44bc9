# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                  import kekik_FastAPI, Request, JSONResponse
from starlette.exceptions  import HTTPException as StarletteHTTPException
from pydantic              import ValidationError
from fastapi.exceptions    import RequestValidationError
from Public.WebSocket.Libs import WatchPartyError, JoinError, PersistenceFailure

@kekik_FastAPI.exception_handler(StarletteHTTPException)
async def custom_http_exception_handler(request: Request, exc):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})

@kekik_FastAPI.exception_handler(ValidationError)
@kekik_FastAPI.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    """Pydantic validation hatalarını JSON olarak döndür"""
    errors   = exc.errors()
    messages = [f"{e['loc'][-1]}: {e['msg']}" if e.get("loc") else e["msg"] for e in errors]

    return JSONResponse(
        status_code = 422,
        content     = {"success": False, "message": " | ".join(messages)}
    )

@kekik_FastAPI.exception_handler(WatchPartyError)
async def watch_party_exception_handler(request: Request, exc: WatchPartyError):
    """Oda / oynatıcı hatalarını JSON olarak döndür"""
    if isinstance(exc, JoinError):
        status_code = 404 if exc.kod == "room_not_found" else 409
    elif isinstance(exc, PersistenceFailure):
        status_code = 503
    else:
        status_code = 400

    return JSONResponse(
        status_code = status_code,
        content     = {"success": False, "code": exc.kod, "message": exc.mesaj}
    )
