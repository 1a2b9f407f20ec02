"""Run the uptime service under uvicorn.

Listens on ``UPTIME_HOST`` (default ``0.0.0.0``) and ``UPTIME_PORT``
(default ``3000``).
"""

import os

import uvicorn

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


def main() -> None:
    host = os.environ.get("UPTIME_HOST", DEFAULT_HOST)
    port = int(os.environ.get("UPTIME_PORT", str(DEFAULT_PORT)))
    # the service configures its own JSON logging
    uvicorn.run("uptime.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
