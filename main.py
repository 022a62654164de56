"""
Development launcher for the housekeeping assignment API.

    python main.py

Host, port and auto-reload come from settings (``HOUSEKEEPING_API_HOST``,
``HOUSEKEEPING_API_PORT``, ``HOUSEKEEPING_API_RELOAD``). Application wiring
lives in app.py.
"""

from __future__ import annotations

import uvicorn

from backend.utils.config import get_settings


def main() -> None:
    settings = get_settings()
    base_url = f"http://{settings.api_host}:{settings.api_port}"

    print("=" * 60)
    print(f"  {settings.app_name} | {settings.hotel_name}")
    print("=" * 60)
    print(f"  API      : {base_url}/assignments")
    print(f"  Health   : {base_url}/health")
    print(f"  API docs : {base_url}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    # Blocks until interrupted
    uvicorn.run(
        "app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
