# backend/dumpdo/__main__.py
"""
Local runner: `python -m dumpdo` from backend/.

Env files are loaded before anything reads os.environ so that Settings and
the Field defaults in core/config.py see the same values.
"""
from __future__ import annotations

import os

from dotenv import load_dotenv

if os.path.exists(".env.backend"):
    load_dotenv(".env.backend")
elif os.path.exists(".env.local"):
    load_dotenv(".env.local")


def main() -> None:
    import uvicorn

    debug = os.getenv("DEBUG", "false").lower() == "true"
    uvicorn.run(
        "dumpdo.interfaces.http.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=debug,
        log_level="debug" if debug else "info",
    )


if __name__ == "__main__":
    main()
