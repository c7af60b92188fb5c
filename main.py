import uvicorn
import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from config import settings
from routes.totp import router as totp_router
from services.errors import OtpError

logging.basicConfig(
    filename=settings.LOG_FILE,
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y/%m/%d %H:%M:%S"
)

app = (FastAPI(
    docs_url=None,
    redoc_url=None,
    openapi_url=None
    )
)

app.include_router(totp_router)

@app.exception_handler(OtpError)
async def otp_exception_handler(request: Request, exc: OtpError):
    return JSONResponse(
        {"message": exc.message, "category": "error"},
        status_code=status.HTTP_400_BAD_REQUEST
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"message": "Invalid request.", "category": "error", "errors": jsonable_encoder(exc.errors())},
        status_code=422
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.exception(f"Unhandled error for request: {request.url}")
    return JSONResponse(
        {"message": "Internal server error.", "category": "error"},
        status_code=500
    )

@app.get("/health", status_code=status.HTTP_200_OK)
@app.head("/health", status_code=status.HTTP_200_OK)
async def health_check():
    return JSONResponse(content={"status": "ok"})

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=int(settings.PORT or 8000), reload=True)
