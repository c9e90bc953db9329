#!/usr/bin/env python3
"""
Production server runner for the Forms2APEX API.

Starts the FastAPI server with reload disabled, several workers and
server/date headers suppressed.
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
    print("  Ensure environment variables are set via your deployment system")

if __name__ == "__main__":
    import uvicorn
    from forms2apex.config import get_settings

    settings = get_settings()
    server_config = settings.server

    if not settings.llm.openrouter_api_key:
        print("⚠ LLM__OPENROUTER_API_KEY is not set; clients must send X-API-Key")

    production_config = {
        "app": server_config.app_module,
        "host": server_config.host,
        "port": server_config.port,
        "workers": max(server_config.workers, 2),  # Minimum 2 workers
        "reload": False,
        "log_config": None,  # Use our structured logging
        "access_log": False,  # Access logging is done by the middleware
        "server_header": False,
        "date_header": False,
        # Chunked generations can run for minutes; keep idle connections open
        "timeout_keep_alive": 30,
    }

    print("🚀 Starting Forms2APEX API production server...")
    print(f"⚙️  Configuration: {server_config.app_module}")
    print(f"🌐 Listening: {server_config.host}:{server_config.port}")
    print(f"👥 Workers: {production_config['workers']}")
    print(f"📊 API Documentation: http://{server_config.host}:{server_config.port}/docs")
    print()

    uvicorn.run(**production_config)
