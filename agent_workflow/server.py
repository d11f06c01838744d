#!/usr/bin/env python
"""
Agent Workflow API Server - HTTP REST API for workflow execution.

Starts a FastAPI server that runs workflow agent definitions and forwards
each step to the agent gateway.

Usage:
    python -m agent_workflow.server --host HOST --port PORT [options]

Arguments:
    --host          Server host (required, e.g., 0.0.0.0 or 127.0.0.1)
    --port          Server port (required, e.g., 8000)
    --agents-url    Agent gateway URL (default: AGENT_GATEWAY_URL or http://localhost:3000)
    --agent-timeout Per-invocation timeout in seconds (default: AGENT_REQUEST_TIMEOUT or 60)
    --time-budget   Default wall-clock budget per run in seconds
    -v, --verbose   Enable verbose logging

Endpoints:
    POST /workflow/run            - Run a workflow definition
    POST /workflow/{id}/cancel    - Cancel an active run
    GET  /workflow/active         - List active runs
    GET  /health                  - Health check
"""

import argparse
import ipaddress
import logging
import os
import re
from logging.handlers import RotatingFileHandler

from agent_workflow import config
from agent_workflow.utils import sanitize_error_message, truncate_base64

_HOSTNAME = re.compile(r'^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*$')


def _redact(value):
    return sanitize_error_message(truncate_base64(value)) if isinstance(value, str) else value


class RedactingFilter(logging.Filter):
    """Masks credentials and truncates base64 blobs in every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = _redact(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(_redact(arg) for arg in record.args)
        return True


def validate_host(value: str) -> str:
    """Accept an IPv4/IPv6 address or a DNS hostname"""
    try:
        ipaddress.ip_address(value)
        return value
    except ValueError:
        pass
    if _HOSTNAME.match(value) and not value.replace('.', '').isdigit():
        return value
    raise argparse.ArgumentTypeError(
        f"Invalid host: '{value}'. Expected an IP address (e.g., 0.0.0.0) or hostname (e.g., localhost)"
    )


def validate_port(value: str) -> int:
    port = int(value) if value.isdigit() else 0
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"Invalid port: '{value}'. Expected an integer between 1 and 65535")
    return port


def validate_url(value: str) -> str:
    """Validate agent gateway URL"""
    if value.startswith("http://") or value.startswith("https://"):
        return value.rstrip('/')
    raise argparse.ArgumentTypeError(
        f"Invalid URL: '{value}'. Expected: http://host:port or https://... (e.g., http://localhost:3000)"
    )


def positive_float(value: str) -> float:
    """Validate a positive number of seconds"""
    try:
        seconds = float(value)
    except ValueError:
        seconds = 0
    if seconds > 0:
        return seconds
    raise argparse.ArgumentTypeError(f"Invalid duration: '{value}'. Expected: positive number of seconds")


def configure_logging(verbose: bool) -> str:
    """
    Console logging at WARNING (DEBUG with -v), plus a rotating file that
    always gets INFO. Returns the log file path.
    """
    os.makedirs(config.LOG_DIR, exist_ok=True)
    log_file = os.path.join(config.LOG_DIR, 'server.log')

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    file_handler.addFilter(RedactingFilter())

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger().addFilter(RedactingFilter())

    for name in ('workflow', 'agent_workflow'):
        named_logger = logging.getLogger(name)
        named_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        named_logger.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    return log_file


def main():
    parser = argparse.ArgumentParser(
        description="Start Agent Workflow API Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m agent_workflow.server --host 0.0.0.0 --port 8000
    python -m agent_workflow.server --host 127.0.0.1 --port 8080 --agents-url http://localhost:3000 -v
        """
    )

    parser.add_argument(
        "--host",
        required=True,
        type=validate_host,
        help="Server host (e.g., 0.0.0.0 or 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        required=True,
        type=validate_port,
        help="Server port (e.g., 8000)"
    )
    parser.add_argument(
        "--agents-url",
        type=validate_url,
        default=config.AGENT_GATEWAY_URL,
        help=f"Agent gateway URL (default: {config.AGENT_GATEWAY_URL})"
    )
    parser.add_argument(
        "--agent-timeout",
        type=positive_float,
        default=config.AGENT_REQUEST_TIMEOUT,
        help=f"Per-invocation timeout in seconds (default: {config.AGENT_REQUEST_TIMEOUT})"
    )
    parser.add_argument(
        "--time-budget",
        type=positive_float,
        default=config.WORKFLOW_TIME_BUDGET,
        help="Default wall-clock budget per run in seconds (default: none)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )

    args = parser.parse_args()

    log_file = configure_logging(args.verbose)
    print(f"Logs written to: {log_file}")

    # Flags override the environment-derived settings
    config.AGENT_GATEWAY_URL = args.agents_url
    config.AGENT_REQUEST_TIMEOUT = args.agent_timeout
    config.WORKFLOW_TIME_BUDGET = args.time_budget

    import uvicorn

    print("=" * 60)
    print("Agent Workflow API Server")
    print("=" * 60)
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Agent gateway: {args.agents_url}")
    print(f"  Agent timeout: {args.agent_timeout}s")
    print(f"  Time budget:   {args.time_budget or 'none'}")
    print()
    print("Endpoints:")
    print(f"  POST http://{args.host}:{args.port}/workflow/run")
    print(f"  POST http://{args.host}:{args.port}/workflow/{{id}}/cancel")
    print(f"  GET  http://{args.host}:{args.port}/workflow/active")
    print(f"  GET  http://{args.host}:{args.port}/health")
    print()
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    from agent_workflow.api.app import app

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "info"
    )


if __name__ == "__main__":
    main()
