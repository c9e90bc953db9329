#!/usr/bin/env python3
"""
Development server runner for the Forms2APEX API.

Starts the FastAPI development server with hot reloading after
loading variables from the project's .env file.
"""

import sys
from pathlib import Path

# Add the src directory to the Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)
    print(f"✓ Loaded environment variables from {env_file}")
else:
    print(f"⚠ No .env file found at {env_file}")
    print("  Every generation request will need an X-API-Key header")

if __name__ == "__main__":
    import uvicorn
    from forms2apex.config import get_settings

    settings = get_settings()
    server_config = settings.server

    print("🚀 Starting Forms2APEX API development server...")
    print(f"📊 API Documentation: http://{server_config.host}:{server_config.port}/docs")
    print(f"🔍 Health Check: http://{server_config.host}:{server_config.port}/health")
    print(f"🤖 Model: {settings.llm.default_model}")
    print(f"📏 Strategy thresholds: single <= {settings.generation.small_threshold_lines} lines, "
          f"chunked <= {settings.generation.medium_threshold_lines} lines")
    print(f"⚙️  Server: {server_config.app_module} on {server_config.host}:{server_config.port}")
    print()

    uvicorn.run(
        server_config.app_module,
        host=server_config.host,
        port=server_config.port,
        reload=server_config.reload,
        workers=server_config.workers,
        reload_dirs=[str(src_path)],
        log_config=None,  # Use our structured logging
        access_log=False  # Access logging is done by the middleware
    )
