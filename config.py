import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class Settings:
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None
    PORT: str = os.getenv("PORT", "8000")
    QR_BOX_SIZE: int = int(os.getenv("QR_BOX_SIZE", "10"))
    QR_BORDER: int = int(os.getenv("QR_BORDER", "4"))

settings = Settings()
