"""
Run the Meeting Prep Assistant server: ``python -m meeting_prep``.
"""

import argparse

from loguru import logger

from meeting_prep.app import create_app
from meeting_prep.auth import get_auth_session
from meeting_prep.config import get_config


def main(argv=None):
    cfg = get_config()
    parser = argparse.ArgumentParser(description="Meeting Prep Assistant server")
    parser.add_argument("--host", default=cfg.web.host, help="Bind address")
    parser.add_argument("--port", type=int, default=cfg.web.port, help="Port to listen on")
    parser.add_argument("--debug", action="store_true", default=cfg.web.debug, help="Flask debug mode")
    args = parser.parse_args(argv)

    session = get_auth_session()
    if session.is_authenticated:
        logger.info(f"Azure CLI signed in as: {session.user_name}")
    else:
        logger.warning("Azure CLI not signed in; use POST /api/auth/login or run `az login`")

    app = create_app(cfg)
    logger.info(f"Meeting Prep Assistant running at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug, threaded=True)


if __name__ == "__main__":
    main()
