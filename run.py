"""
Run the API server (HOST/PORT from settings, default port 3005).
Usage: python3 run.py   (from the project root); reloads on change when DEBUG=true.
"""
import uvicorn

from config import settings

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
