"""服务入口 -- python -m missionctl.gateway"""

import uvicorn
from missionctl.core.config import get_listen_host, get_listen_port


def main() -> None:
    uvicorn.run(
        "missionctl.gateway.main:app",
        host=get_listen_host(),
        port=get_listen_port(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
