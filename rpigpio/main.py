from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .config import AppConfig, ControlConfig
from .gpio import PinController

logger = logging.getLogger(__name__)


def _resolve_control(cfg: AppConfig, args: argparse.Namespace) -> ControlConfig:
    data = cfg.control.model_dump()
    if args.type is not None:
        data["mode"] = args.type
    if args.pin is not None:
        data["pin"] = args.pin
    if args.delay is not None:
        data["delay"] = args.delay
    return ControlConfig.model_validate(data)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Pulse or toggle a GPIO pin through sysfs")
    ap.add_argument("--config", help="Path to config TOML")
    ap.add_argument("--type", help="Control type: timer (default) or toggle")
    ap.add_argument("--pin", help="BCM pin number (default 18)")
    ap.add_argument("--delay", help="Timer pulse length, e.g. 500ms, 2s, 1m (default 2s)")
    ap.add_argument("--sysfs-root", help="GPIO sysfs directory (default /sys/class/gpio)")
    ap.add_argument("--unexport", action="store_true", help="Unexport the pin and exit")
    ap.add_argument("--log-level", help="Logging level (default INFO)")
    return ap


def cli(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        cfg = AppConfig.from_toml(args.config) if args.config else AppConfig()
        control = _resolve_control(cfg, args)
    except (ValidationError, OSError) as e:
        raise SystemExit(str(e))

    level = (args.log_level or cfg.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO))

    sysfs_root = Path(args.sysfs_root) if args.sysfs_root else cfg.gpio.sysfs_root
    ctrl = PinController(control, sysfs_root=sysfs_root)

    if args.unexport:
        ctrl.disable_pin()
        return

    logger.info("Running %s on gpio%s", control.mode.value, control.pin)
    try:
        ctrl.run()
    except (OSError, ValueError) as e:
        logger.error("Control of gpio%s failed: %s", control.pin, e)
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
