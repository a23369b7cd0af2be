from __future__ import annotations
import argparse
import time
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from ..config import SYSFS_ROOT, ControlConfig
from ..gpio import PinController


def describe(ctrl: PinController) -> str:
    if not ctrl.is_exported():
        return f"gpio{ctrl.pin} exported=False direction=- value=-"
    try:
        direction = ctrl.read_direction()
    except OSError:
        direction = "?"
    try:
        value = ctrl.read_value().strip()
    except OSError:
        value = "?"
    return f"gpio{ctrl.pin} exported=True direction={direction} value={value}"


def cli(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="GPIO sysfs state read-out helper")
    ap.add_argument("--pin", default="")
    ap.add_argument("--sysfs-root", default=str(SYSFS_ROOT))
    ap.add_argument("--interval", type=float, default=0.1)
    ap.add_argument("--count", type=int, default=0, help="Stop after N reads (0 = forever)")
    args = ap.parse_args(argv)

    try:
        control = ControlConfig.build(pin=args.pin)
    except ValidationError as e:
        raise SystemExit(str(e))

    ctrl = PinController(control, sysfs_root=Path(args.sysfs_root))

    n = 0
    try:
        while True:
            print(describe(ctrl))
            n += 1
            if args.count and n >= args.count:
                break
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass
