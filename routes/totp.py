import io
from typing import List, Optional
from fastapi import APIRouter, Form, status
from fastapi.responses import JSONResponse
from starlette.responses import StreamingResponse
from constants import AppConstants
from models import Account, HashAlgorithm
from services import ga_export, otp_generator, otpauth_uri
from services.import_export_service import ImportExportService
from services.validator import validate_totp
from utils import normalize_secret

router = APIRouter(prefix="/totp", tags=["totp"])


def _error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse({"message": message, "category": "error"}, status_code=status_code)


def _accounts_from_lines(uris: str) -> List[Account]:
    accounts = []
    for line in uris.splitlines():
        if line.strip():
            accounts.extend(ImportExportService.decode(line))
    return accounts


@router.post("/import", response_class=JSONResponse)
async def import_totps(uri: str = Form(...)):
    accounts, error_msg = ImportExportService.parse_import(uri)
    if error_msg:
        return _error(error_msg)
    return JSONResponse({
        "accounts": [a.to_dict() for a in accounts],
        "message": f"Imported {len(accounts)} item(s).",
        "category": "success",
    })


@router.post("/create", response_class=JSONResponse)
async def post_create(account: str = Form(...), issuer: str = Form(...), secret: str = Form(...),
                      algorithm: str = Form(AppConstants.DEFAULT_ALGORITHM),
                      digits: int = Form(AppConstants.DEFAULT_DIGITS),
                      period: int = Form(AppConstants.DEFAULT_PERIOD)):
    error_msg = validate_totp(account, issuer, secret, algorithm, digits, period)
    if error_msg:
        return _error(error_msg)

    item = Account(
        issuer=issuer.strip(),
        label=account.strip(),
        secret=normalize_secret(secret),
        algorithm=HashAlgorithm.from_name(algorithm),
        digits=digits,
        period=period,
    )
    return JSONResponse({"account": item.to_dict(), "uri": otpauth_uri.generate(item)},
                        status_code=status.HTTP_201_CREATED)


@router.post("/code", response_class=JSONResponse)
async def get_code(secret: str = Form(...), issuer: str = Form(AppConstants.UNKNOWN_ISSUER),
                   account: str = Form(""),
                   algorithm: str = Form(AppConstants.DEFAULT_ALGORITHM),
                   digits: int = Form(AppConstants.DEFAULT_DIGITS),
                   period: int = Form(AppConstants.DEFAULT_PERIOD),
                   timestamp: Optional[float] = Form(None)):
    item = Account(
        issuer=issuer,
        label=account,
        secret=normalize_secret(secret),
        algorithm=HashAlgorithm.from_name(algorithm),
        digits=digits,
        period=period,
    )
    return JSONResponse(otp_generator.snapshot(item, timestamp).to_dict())


@router.post("/export", response_class=JSONResponse)
async def export_uri(uris: str = Form(...)):
    uri, error_msg = ImportExportService.export(_accounts_from_lines(uris))
    if error_msg:
        return _error(error_msg)
    return JSONResponse({"uri": uri})


@router.post("/export/qr")
async def export_qr(uris: str = Form(...)):
    uri, error_msg = ImportExportService.export(_accounts_from_lines(uris))
    if error_msg:
        return _error(error_msg)

    png_bytes = ga_export.build_qr_png(uri)
    return StreamingResponse(io.BytesIO(png_bytes), media_type="image/png",
                             headers={"Content-Disposition": 'inline; filename="totp_export.png"'})
