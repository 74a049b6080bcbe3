#!/usr/bin/env python3
"""Main entry point for RiskGate."""

import argparse

from riskgate.common.logging import get_logger
from riskgate.common.config import get_config

logger = get_logger(__name__)


def serve(args: argparse.Namespace) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    config = get_config()
    logger.info(f"RiskGate starting in {config.environment.value} mode")
    uvicorn.run(
        "riskgate.api.gateway:app",
        host=args.host or config.api_host,
        port=args.port or config.api_port,
        reload=args.reload,
        log_level=config.log_level.value.lower(),
    )


def recompute(args: argparse.Namespace) -> None:
    """Run one offline feature recomputation against the configured stores."""
    from riskgate.api.service import RiskScoringService

    config = get_config()
    service = RiskScoringService.from_config(config)
    try:
        summary = service.recompute_features()
    finally:
        service.shutdown()

    logger.info(
        f"Recomputed features for {summary.users_updated}/{summary.users_processed} users"
    )
    if summary.failed_users:
        logger.warning(f"Failed users: {', '.join(summary.failed_users)}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="riskgate", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.set_defaults(func=serve)

    recompute_parser = subparsers.add_parser(
        "recompute", help="Recompute per-user risk features"
    )
    recompute_parser.set_defaults(func=recompute)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
