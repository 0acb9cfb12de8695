"""Local dev launcher — runs the ScriptSync API with console logging.

Usage:
    python run_local.py

Without AI_API_KEY set, AI matching always takes the allocator fallback.
"""

import os
from pathlib import Path

root = Path(__file__).parent

# Set local-friendly env defaults (won't override if already set)
os.environ.setdefault("SCRIPTSYNC_ENV", "local")
os.environ.setdefault("AI_PROVIDER", "openai")

from scriptsync.api.app import create_app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    print()
    print("=" * 60)
    print("  ScriptSync — Local Dev Mode")
    print("=" * 60)
    print(f"  API:      http://localhost:8080")
    print(f"  Docs:     http://localhost:8080/docs")
    print(f"  Metrics:  http://localhost:8080/metrics")
    print(f"  Provider: {os.environ['AI_PROVIDER']}")
    print(f"  AI key:   {'set' if os.environ.get('AI_API_KEY') else 'not set (fallback only)'}")
    print("=" * 60)
    print()

    uvicorn.run(
        "run_local:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        reload_dirs=[str(root / "scriptsync")],
    )
