#!/usr/bin/env python
"""
Chainlab 服务启动脚本
"""
import os
import sys
import argparse
import asyncio

if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def parse_args():
    parser = argparse.ArgumentParser(description='Chainlab API Server')
    parser.add_argument('--host', type=str, default=os.getenv('HOST', '0.0.0.0'), help='服务监听地址')
    parser.add_argument('--port', type=int, default=int(os.getenv('PORT', '8080')), help='服务监听端口')
    parser.add_argument('--reload', action='store_true', help='开发模式（热重载）')
    parser.add_argument('--log-level', type=str, default='info',
                        choices=['critical', 'error', 'warning', 'info', 'debug', 'trace'],
                        help='日志级别')
    return parser.parse_args()


def main():
    args = parse_args()

    print("\n" + "=" * 60)
    print("  Chainlab API Server")
    print("=" * 60)
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Reload: {args.reload}")
    print(f"  Log Level: {args.log_level}")
    print("=" * 60 + "\n")

    os.environ.setdefault('HOST', args.host)
    os.environ.setdefault('PORT', str(args.port))

    from chainlab.config import get_settings
    from chainlab.core.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    uvicorn.run(
        "chainlab.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=True,
    )


if __name__ == "__main__":
    main()
