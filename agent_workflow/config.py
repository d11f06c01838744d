"""
Engine Configuration

Settings read from the environment with defaults. A .env file in the
working directory is loaded first. The server CLI overwrites these module
attributes from its flags before the app starts.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Existing environment variables win over .env entries
load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    return float(value)


# Loop workflows stop after this many iterations when the definition sets none
DEFAULT_LOOP_MAX_ITERATIONS = int(os.environ.get("DEFAULT_LOOP_MAX_ITERATIONS", "10"))

# Wall-clock budget (seconds) applied to runs that do not carry their own
WORKFLOW_TIME_BUDGET = _optional_float("WORKFLOW_TIME_BUDGET")

# HTTP agent invoker
AGENT_GATEWAY_URL = os.environ.get("AGENT_GATEWAY_URL", "http://localhost:3000")
AGENT_REQUEST_TIMEOUT = float(os.environ.get("AGENT_REQUEST_TIMEOUT", "60"))

LOG_DIR = os.environ.get("LOG_DIR", os.path.join(os.getcwd(), "logs"))


def get_cors_origins() -> List[str]:
    """Comma-separated CORS_ORIGINS, or the local dev frontends."""
    cors_origins_str = os.environ.get("CORS_ORIGINS", "")
    if not cors_origins_str:
        return ["http://localhost:5173", "http://localhost:3000"]
    return [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
