# hospitalms/__main__.py
import uvicorn

from hospitalms.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "hospitalms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
