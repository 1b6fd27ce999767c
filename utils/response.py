from typing import Any, Optional

from fastapi.responses import JSONResponse


def success_response(data: Optional[Any] = None, message: str = "OK", status_code: int = 200):
    body = {"success": True, "message": message, "data": data}
    if status_code == 200:
        return body
    return JSONResponse(body, status_code=status_code)


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code)
