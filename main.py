"""
Root entrypoint — run with:
    uvicorn main:app
    or:  python main.py   (auto-reload when DEBUG=true)
"""

from app.core.config import settings
from app.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=settings.DEBUG)
