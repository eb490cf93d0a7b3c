#!/usr/bin/env python3
"""
Dashboard development runner.
For local development only - connects to a local Cognis gateway at 127.0.0.1:8787.
"""

import os
import sys
from pathlib import Path

# Add src to path
project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir / "src"))
os.chdir(project_dir)

# Load .env file if it exists (values take priority over defaults)
from dotenv import load_dotenv

env_file = project_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)
    print(f"Loaded config from {env_file}")

os.environ.setdefault("COGNIS_DASHBOARD_API_BASE_URL", "http://127.0.0.1:8787")

import uvicorn

if __name__ == "__main__":
    api_url = os.getenv("COGNIS_DASHBOARD_API_BASE_URL")
    print("Starting Cognis operations dashboard...")
    print(f"Gateway API: {api_url}")
    print("Dashboard: http://127.0.0.1:8790/api/v1/dashboard")
    print("")
    print("Make sure the gateway is running first:")
    print("   cognis gateway")

    uvicorn.run(
        "cognis_dashboard.server:get_app",
        host="127.0.0.1",
        port=8790,
        reload=True,
        reload_dirs=["src"],
        log_level="info",
        factory=True,
    )
