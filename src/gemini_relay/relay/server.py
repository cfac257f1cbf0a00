"""Launch the relay's FastAPI app under uvicorn."""
from __future__ import annotations
import subprocess
import sys

from gemini_relay.relay.config import get_settings


def build_command() -> list[str]:
    settings = get_settings()
    return [
        sys.executable,
        "-m",
        "uvicorn",
        "gemini_relay.relay.fastapi_app:app",
        "--host", settings.host,
        "--port", str(settings.port),
        "--log-level", settings.log_level.lower(),
    ]


def main() -> None:
    subprocess.run(build_command(), check=True)

if __name__ == "__main__":
    main()
