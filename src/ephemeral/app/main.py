"""Headless command-line runner for the Ephemeral viewer."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
from typing import Optional, Sequence

from ephemeral.app.session import ViewerSession
from ephemeral.config.loader import load_viewer_ctx
from ephemeral.config.models import ViewerCtx

logger = logging.getLogger("ephemeral")

_LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ephemeral headless viewer session")
    parser.add_argument(
        "--assets",
        dest="asset_root",
        default=os.getenv("EPHEMERAL_ASSET_ROOT"),
        help="Directory holding <scene_id>.<ext> assets",
    )
    parser.add_argument(
        "--time-scale",
        type=float,
        default=None,
        help="Multiply every timer delay (0.01 plays the 3 minute countdown in ~2s)",
    )
    parser.add_argument("--restarts", type=int, default=0, help="Restart the experience N times after destruction")
    parser.add_argument("--night", action="store_true", help="Start at night instead of daytime")
    parser.add_argument("--rain", action="store_true", help="Start with rain")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG for the ephemeral logger only")
    return parser


def resolve_ctx(args: argparse.Namespace, base: Optional[ViewerCtx] = None) -> ViewerCtx:
    ctx = base if base is not None else load_viewer_ctx()
    cfg = ctx.cfg
    cfg = dataclasses.replace(
        cfg,
        asset_root=args.asset_root or cfg.asset_root,
        default_daytime=cfg.default_daytime and not args.night,
        default_rainy=cfg.default_rainy or args.rain,
    )
    time_scale = ctx.time_scale
    if args.time_scale is not None:
        if args.time_scale <= 0.0:
            raise SystemExit("--time-scale must be positive")
        time_scale = float(args.time_scale)
    return dataclasses.replace(ctx, cfg=cfg, time_scale=time_scale)


def _enable_debug_logger() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    # Keep DEBUG records away from the INFO root handler.
    logger.propagate = False


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
    if args.debug:
        _enable_debug_logger()
    ctx = resolve_ctx(args)
    if not ctx.cfg.asset_root:
        raise SystemExit("an asset directory is required (--assets or EPHEMERAL_ASSET_ROOT)")
    logger.info("Resolved ViewerCtx: %s", ctx)

    async def run() -> int:
        session = ViewerSession(ctx)
        return await session.run(restarts=max(0, int(args.restarts)))

    restarts = asyncio.run(run())
    logger.info("session finished after %d restart(s)", restarts)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
