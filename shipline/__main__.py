# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Run the API with uvicorn:  python -m shipline"""

import uvicorn

from shipline.core.config import settings


def main() -> None:
    uvicorn.run(
        "shipline.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,  # keep the fileConfig from etc/logging.conf
    )


if __name__ == "__main__":
    main()
