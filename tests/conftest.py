from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

import pytest

from rpigpio.config import ControlConfig
from rpigpio.gpio import PinController


@dataclass
class FakeKernelController(PinController):
    """Applies the side effects the kernel performs for sysfs writes."""

    def _write(self, path: Path, data: str) -> None:
        path = Path(path)
        root = Path(self.sysfs_root)
        if path == root / "export":
            super()._write(path, data)
            pin_dir = root / f"gpio{data.strip()}"
            pin_dir.mkdir()
            (pin_dir / "direction").write_text("in\n")
            (pin_dir / "value").write_text("0\n")
        elif path == root / "unexport":
            super()._write(path, data)
            shutil.rmtree(root / f"gpio{data.strip()}")
        elif path.name == "value":
            # the kernel reports values back with a trailing newline
            super()._write(path, data.strip() + "\n")
        else:
            super()._write(path, data)


@pytest.fixture
def sysfs(tmp_path: Path) -> Path:
    root = tmp_path / "gpio"
    root.mkdir()
    (root / "export").write_text("")
    (root / "unexport").write_text("")
    return root


@pytest.fixture
def export_pin(sysfs: Path):
    def _export(pin: int, direction: str = "out", value: str = "0") -> Path:
        pin_dir = sysfs / f"gpio{pin}"
        pin_dir.mkdir()
        (pin_dir / "direction").write_text(direction + "\n")
        (pin_dir / "value").write_text(value + "\n")
        return pin_dir

    return _export


@pytest.fixture
def make_controller(sysfs: Path):
    def _make(**raw: str) -> FakeKernelController:
        return FakeKernelController(ControlConfig.build(**raw), sysfs_root=sysfs)

    return _make
