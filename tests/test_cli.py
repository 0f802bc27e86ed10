"""CLI tests for the asset combiner commands."""

import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

sys.path.insert(0, str(Path(__file__).parent.parent))

from asset_combiner.cli import build_combiner, cli


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)
        for name, content in {
            "css/a.css": "a{background:url(a.png)}",
            "css/b.css": "b{color:red}",
            "js/app.js": "app();",
            "files/keep.txt": "x",
            "files/skip/no.txt": "x",
        }.items():
            path = self.root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        self.config = {
            "logging": {},
            "combiner": {"web_root": str(self.root), "debug_mode": False},
            "bundles": {
                "styles": [{"path": "css/a.css"}, {"paths": ["css/b.css"]}],
                "scripts": [{"path": "js/app.js", "version": 3}],
                "mixed": ["css/a.css", "js/app.js"],
            },
            "files": {"upload_path": "files", "sync_exclude": "skip"},
        }

    def tearDown(self):
        self.tmp_dir.cleanup()

    def _invoke(self, *args):
        with patch("asset_combiner.cli.setup_logging"), \
                patch("asset_combiner.cli.ensure_directories"), \
                patch("asset_combiner.cli.load_config", return_value=self.config):
            return self.runner.invoke(cli, list(args))

    def test_build_combiner_uses_bundle_defaults(self):
        combiner = build_combiner(self.config, "styles")
        self.assertEqual([e.media for e in combiner.entries], ["all", "screen"])
        self.assertEqual(build_combiner(self.config, "scripts").entries[0].version, "3")

    def test_urls(self):
        result = self._invoke("urls", "styles")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.splitlines(), ["css/a.css", "css/b.css|screen"])

    def test_combine_writes_artifact(self):
        result = self._invoke("combine", "styles")
        self.assertEqual(result.exit_code, 0, result.output)
        location = result.output.strip()
        self.assertRegex(location, r"^assets/css/[a-z0-9]+\.css$")
        self.assertEqual(
            (self.root / location).read_text(encoding="utf-8"),
            "a{background:url(../../css/a.png)}\n@media screen{\nb{color:red}\n}\n",
        )

    def test_combine_debug_override(self):
        result = self._invoke("combine", "scripts", "--debug")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), '<script src="js/app.js"></script>')

    def test_combine_mixed_bundle_fails(self):
        result = self._invoke("combine", "mixed")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot combine", result.output)

    def test_unknown_bundle_fails(self):
        result = self._invoke("urls", "nope")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown bundle", result.output)

    def test_scan_applies_exclusions(self):
        result = self._invoke("scan", "files")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.splitlines(), ["files/keep.txt"])

    def test_translate_missing_key_echoes_key(self):
        self.config["translations"] = {"dir": str(self.root / "languages"), "locale": "en"}
        result = self._invoke("translate", "MSC.missing", "--domain", "cli_test")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), "MSC.missing")

    def test_config_error_exits(self):
        with patch("asset_combiner.cli.load_config", side_effect=FileNotFoundError("no config")):
            result = self.runner.invoke(cli, ["urls", "styles"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error loading configuration", result.output)


if __name__ == "__main__":
    unittest.main()
