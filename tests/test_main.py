import time

import pytest

from rpigpio.main import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RPIGPIO_CONTROL__MODE", "RPIGPIO_CONTROL__PIN", "RPIGPIO_CONTROL__DELAY",
                 "RPIGPIO_GPIO__SYSFS_ROOT", "RPIGPIO_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_cli_toggle(sysfs, export_pin):
    pin_dir = export_pin(4, value="0")

    cli(["--type", "toggle", "--pin", "4", "--sysfs-root", str(sysfs)])

    assert (pin_dir / "value").read_text().strip() == "1"


def test_cli_timer(sysfs, export_pin):
    pin_dir = export_pin(18, value="0")

    cli(["--delay", "200ms", "--sysfs-root", str(sysfs)])
    assert (pin_dir / "value").read_text().strip() == "1"

    deadline = time.monotonic() + 2
    while (pin_dir / "value").read_text().strip() != "0" and time.monotonic() < deadline:
        time.sleep(0.01)
    assert (pin_dir / "value").read_text().strip() == "0"


def test_cli_invalid_pin(sysfs):
    with pytest.raises(SystemExit) as exc:
        cli(["--pin", "21", "--sysfs-root", str(sysfs)])
    assert "Invalid GPIO pin number: 21" in str(exc.value.code)


def test_cli_invalid_delay(sysfs):
    with pytest.raises(SystemExit) as exc:
        cli(["--delay", "soon", "--sysfs-root", str(sysfs)])
    assert "Invalid time delay format" in str(exc.value.code)


def test_cli_run_failure_exits_1(sysfs):
    (sysfs / "export").unlink()
    with pytest.raises(SystemExit) as exc:
        cli(["--pin", "18", "--sysfs-root", str(sysfs)])
    assert exc.value.code == 1


def test_cli_unexport(sysfs, export_pin):
    export_pin(4)

    cli(["--pin", "4", "--unexport", "--sysfs-root", str(sysfs)])

    assert (sysfs / "unexport").read_text() == "4"
    assert (sysfs / "gpio4" / "value").read_text() == "0\n"


def test_cli_flags_override_config_file(tmp_path, sysfs, export_pin):
    gpio4 = export_pin(4, value="0")
    gpio17 = export_pin(17, value="0")
    path = tmp_path / "rpigpio.toml"
    path.write_text(
        '[control]\nmode = "toggle"\npin = 4\n\n'
        f'[gpio]\nsysfs_root = "{sysfs}"\n'
    )

    cli(["--config", str(path), "--pin", "17"])

    assert (gpio17 / "value").read_text().strip() == "1"
    assert (gpio4 / "value").read_text() == "0\n"


def test_cli_missing_config_file(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli(["--config", str(tmp_path / "nope.toml")])
    assert "nope.toml" in str(exc.value.code)
