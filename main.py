"""
B2B Network API - server entry point.

Usage: python main.py  (or: uvicorn b2b_backend.api.app:app --reload)
"""

import os

from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402


def main():
    """Run the API server."""
    uvicorn.run(
        "b2b_backend.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()
