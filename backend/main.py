#!/usr/bin/env python3
"""
Tubely API server entry point.

Usage:
    # Run with uvicorn directly
    uvicorn tubely.main:app --host 0.0.0.0 --port 8091 --reload

    # Run as Python script
    python main.py
"""

import uvicorn

from tubely.config import get_settings
from tubely.main import app


__all__ = ["app"]


if __name__ == "__main__":
    settings = get_settings()

    print("=" * 60)
    print(f"{settings.app_name} API Server Starting...")
    print("=" * 60)
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Debug/Reload: {settings.debug}")
    print(f"Log Level: {settings.log_level}")
    print("=" * 60)

    uvicorn.run(
        "tubely.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
        access_log=settings.debug,
    )
