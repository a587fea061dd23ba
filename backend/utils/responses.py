from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder


def success_response(data=None, message="OK", status=200, **extra):
    """`data` is sent as-is, so None becomes a JSON null."""
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder({
            "ok": True,
            "data": data,
            "error": None,
            "message": message,
            **extra,
        })
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder({
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        })
    )
