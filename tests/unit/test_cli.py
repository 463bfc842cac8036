"""
Tests for the plinthctl command line.

This test suite covers:
1. Help output and argument parsing
2. --init config generation
3. Start, activate, disable and remove through the CLI
"""

import tempfile
import zipfile
from pathlib import Path

from plinth.component.origin import DESCRIPTOR_NAME
from plinth.config.store import SettingsStore
from plinthctl.cli import create_parser, main

SHOP_XML = b"""<components><component>
  <name>Shop</name><code>shop</code><version>1</version><enter>shop.html</enter>
</component></components>"""


def write_host(root: Path) -> Path:
    components = root / "components"
    components.mkdir()
    with zipfile.ZipFile(components / "shop.zip", "w") as archive:
        archive.writestr(DESCRIPTOR_NAME, SHOP_XML)
        archive.writestr("webapp/shop.html", b"shop")

    config_file = root / "plinth.toml"
    config_file.write_text(
        "[plinth]\n"
        'discovery_paths = ["components"]\n'
        'settings_file = "state/settings.toml"\n'
        'log_status_file = "state/log-status.toml"\n'
    )
    return config_file


class TestParser:
    """Test argument parsing."""

    def test_flags(self):
        args = create_parser().parse_args(["-A", "blog", "shop", "-c", "x.toml"])

        assert args.activate
        assert args.targets == ["blog", "shop"]
        assert args.config == Path("x.toml")

    def test_help(self, capsys):
        """No operation should print help and succeed."""
        assert main([]) == 0
        assert "plinthctl -S" in capsys.readouterr().out

        assert main(["-h"]) == 0


class TestInit:
    """Test --init."""

    def test_writes_default_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "conf" / "plinth.toml"

            assert main(["--init", "-c", str(config_file)]) == 0
            assert "[plinth]" in config_file.read_text()

    def test_refuses_existing_file(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plinth.toml"
            config_file.write_text("# mine\n")

            assert main(["--init", "-c", str(config_file)]) == 1
            assert config_file.read_text() == "# mine\n"
            assert "already exists" in capsys.readouterr().err


class TestLifecycleCommands:
    """Test lifecycle commands end to end."""

    def test_start_then_disable_and_remove(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            config_file = write_host(root)
            settings_file = root / "state" / "settings.toml"

            assert main(["-S", "-c", str(config_file)]) == 0
            assert SettingsStore.open(settings_file)["plinth.component.shop.state"] == "active"
            assert (root / "webroot" / "shop.html").exists()

            assert main(["-D", "shop", "-c", str(config_file)]) == 0
            assert SettingsStore.open(settings_file)["plinth.component.shop.state"] == "disable"

            assert main(["-A", "shop", "-c", str(config_file)]) == 0
            assert SettingsStore.open(settings_file)["plinth.component.shop.state"] == "active"

            assert main(["-R", "shop", "-c", str(config_file)]) == 0
            assert "plinth.component.shop.state" not in SettingsStore.open(settings_file)
            assert not (root / "webroot" / "shop.html").exists()

    def test_unknown_target_fails(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = write_host(Path(tmpdir))

            assert main(["-A", "missing", "-c", str(config_file)]) == 1
            assert "Failed to activate missing" in capsys.readouterr().err

    def test_no_targets(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = write_host(Path(tmpdir))

            assert main(["-R", "-c", str(config_file)]) == 1
            assert "No targets specified" in capsys.readouterr().err

    def test_invalid_config(self, capsys):
        """A config that fails validation should exit with 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plinth.toml"
            config_file.write_text("[plinth]\nbogus = 1\n")

            assert main(["-S", "-c", str(config_file)]) == 1
            assert "Unknown configuration field" in capsys.readouterr().err
