#!/usr/bin/env python
"""
Start the Agri Assist FastAPI service.
"""

import os
import sys
import argparse
import logging
import uvicorn

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Start the Agri Assist FastAPI service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_web.py                    # defaults from .env
    python run_web.py --port 8080        # listen on 8080
    python run_web.py --llm mock         # offline canned answers
    python run_web.py --reload           # auto reload while developing
        """
    )

    parser.add_argument(
        '--host',
        type=str,
        default='0.0.0.0',
        help='bind address (default: 0.0.0.0)'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=None,
        help='port (default: FASTAPI_PORT or 8000)'
    )

    parser.add_argument(
        '--reload',
        action='store_true',
        help='reload on code changes'
    )

    parser.add_argument(
        '--llm',
        type=str,
        choices=['openai', 'mock'],
        default=None,
        help='model provider, overrides LLM_PROVIDER'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=1,
        help='worker processes (default: 1)'
    )

    args = parser.parse_args()

    # workers re-import the app, so settings travel through the environment
    if args.llm:
        os.environ['LLM_PROVIDER'] = args.llm

    from agri_assist.infra.config import get_config

    cfg = get_config()
    port = args.port or cfg.fastapi_port
    display_host = args.host if args.host != '0.0.0.0' else 'localhost'

    logger.info(f"Starting FastAPI server: http://{display_host}:{port}")
    logger.info(f"LLM provider: {cfg.llm_provider}")
    logger.info(f"Reload: {args.reload}")
    logger.info(f"Workers: {args.workers}")
    logger.info(f"API docs: http://{display_host}:{port}/docs")

    uvicorn.run(
        "agri_assist.api.server:app",
        host=args.host,
        port=port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level="info"
    )


if __name__ == '__main__':
    main()
