"""Entrypoint so `python -m backend.main` serves the API.

The FastAPI app lives at `backend.src.app.main:app`.
"""

from backend.src import config
from backend.src.app.main import app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
