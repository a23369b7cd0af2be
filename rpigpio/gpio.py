from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import SYSFS_ROOT, ControlConfig, ControlMode

logger = logging.getLogger(__name__)

HIGH = "1"
LOW = "0"


@dataclass
class PinController:
    """
    Drives one pin through the kernel sysfs GPIO interface.

    The pin directory may already exist (exported by an earlier run or by
    another process); that is never an error and never re-exported.
    """

    config: ControlConfig
    sysfs_root: Path = SYSFS_ROOT

    @property
    def pin(self) -> int:
        return self.config.pin

    @property
    def pin_dir(self) -> Path:
        return Path(self.sysfs_root) / f"gpio{self.pin}"

    @property
    def value_path(self) -> Path:
        return self.pin_dir / "value"

    @property
    def direction_path(self) -> Path:
        return self.pin_dir / "direction"

    def _write(self, path: Path, data: str) -> None:
        with open(path, "w") as f:
            f.write(data)

    def is_exported(self) -> bool:
        return self.pin_dir.exists()

    def read_value(self) -> str:
        return self.value_path.read_text(errors="replace")

    def read_direction(self) -> str:
        return self.direction_path.read_text(errors="replace").strip()

    def enable_pin(self) -> None:
        if self.is_exported():
            # trust whatever direction is already configured
            return

        export_path = Path(self.sysfs_root) / "export"
        if not export_path.exists():
            raise FileNotFoundError(f"GPIO export file not found: {export_path}")

        self._write(export_path, str(self.pin))
        self._write(self.direction_path, "out")
        logger.debug("Exported gpio%s as output", self.pin)

    def disable_pin(self) -> None:
        if not self.is_exported():
            return

        try:
            self._write(Path(self.sysfs_root) / "unexport", str(self.pin))
        except OSError as e:
            logger.error("Can't unexport gpio%s: %s", self.pin, e)
            return
        logger.debug("Unexported gpio%s", self.pin)

    def run(self) -> Optional[threading.Thread]:
        """
        Execute the configured mode.

        Timer mode returns the (already started) thread that deasserts the
        pin once the delay has elapsed. It is not cancellable; joining it is
        optional. Toggle mode returns None.
        """
        if self.config.mode == ControlMode.TIMER:
            return self.start_timer()
        if self.config.mode == ControlMode.TOGGLE:
            self.toggle()
            return None
        raise ValueError(f"Invalid control type: {self.config.mode}")

    def start_timer(self) -> threading.Thread:
        try:
            self.enable_pin()
        except OSError as e:
            logger.error("Couldn't enable gpio%s: %s", self.pin, e)
            raise

        self._write(self.value_path, HIGH)
        logger.info("gpio%s HIGH, going LOW in %ss", self.pin, self.config.delay)

        t = threading.Thread(
            target=self._deassert_after,
            args=(self.config.delay,),
            name=f"gpio{self.pin}-timer",
        )
        t.start()
        return t

    def _deassert_after(self, delay_s: float) -> None:
        time.sleep(delay_s)
        try:
            self._write(self.value_path, LOW)
        except OSError as e:
            logger.error("Couldn't set gpio%s LOW: %s", self.pin, e, exc_info=True)
            return
        logger.info("gpio%s LOW", self.pin)

    def toggle(self) -> None:
        # unlike the timer, a failed enable is not fatal here; the value write decides
        try:
            self.enable_pin()
        except OSError as e:
            logger.error("Couldn't enable gpio%s: %s", self.pin, e)

        current = ""
        try:
            current = self.read_value()
        except OSError as e:
            logger.error("Can't read the state of gpio%s: %s", self.pin, e)

        new = LOW if current == HIGH + "\n" else HIGH
        self._write(self.value_path, new)
        logger.info("gpio%s toggled to %s", self.pin, "HIGH" if new == HIGH else "LOW")
