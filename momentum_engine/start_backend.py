#!/usr/bin/env python3
"""
Momentum engine startup wrapper.

Usage: python -m momentum_engine.start_backend  (PORT and HOST from env)
"""
import os
import sys

# Add workspace to path
workspace_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, workspace_root)


def main() -> int:
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    print(f"[momentum] Starting momentum engine on http://{host}:{port}")
    try:
        uvicorn.run(
            "momentum_engine.main:app",
            host=host,
            port=port,
            reload=False,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[momentum] Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
