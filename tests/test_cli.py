from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from _testutil import ensure_repo_on_path

ensure_repo_on_path()

from nexe_builds import cli  # noqa: E402
from nexe_builds.github.releases import Asset, Release  # noqa: E402


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        (self.root / "package.json").write_text(json.dumps({"version": "5.2.0"}), encoding="utf-8")
        self.base_args = [
            "--project-root", str(self.root),
            "--platform", "darwin",
            "--arch", "x64",
            "--runtime-version", "v20.11.0",
        ]

    def tearDown(self) -> None:
        self._td.cleanup()

    def _main(self, args, env):
        out, err = io.StringIO(), io.StringIO()
        with mock.patch.dict(os.environ, env, clear=True), contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            rc = cli.main(args)
        return rc, out.getvalue(), err.getvalue()

    def test_missing_token_exits_1_without_network(self) -> None:
        with mock.patch.object(cli, "GitHubReleasesClient") as client_cls:
            rc, out, err = self._main(self.base_args, {})
        self.assertEqual(rc, 1)
        self.assertIn("Did not get github token. Missing secret?", err)
        client_cls.assert_not_called()
        self.assertIn("target = mac-x64-20.11.0", out)

    def test_existing_asset_exits_0(self) -> None:
        with mock.patch.object(cli, "GitHubReleasesClient") as client_cls, mock.patch.object(
            cli, "resolve_toolchain"
        ) as toolchain:
            client_cls.return_value.list_releases.return_value = [
                Release(id=3, tag_name="5.2.0", assets=[Asset(name="mac-x64-20.11.0")])
            ]
            rc, out, _ = self._main(self.base_args, {"GH_TOKEN": "t"})
        self.assertEqual(rc, 0)
        self.assertIn("Found asset already exists; skipping.", out)
        client_cls.return_value.upload_asset.assert_not_called()
        client_cls.return_value.close.assert_called_once_with()
        toolchain.assert_not_called()

    def test_missing_release_exits_1(self) -> None:
        with mock.patch.object(cli, "GitHubReleasesClient") as client_cls:
            client_cls.return_value.list_releases.return_value = []
            rc, _, err = self._main(self.base_args + ["--skip-upload"], {"GH_TOKEN": "t"})
        self.assertEqual(rc, 1)
        self.assertIn("[nexe-builds][FAILED] ReleaseNotFoundError: release not found for version 5.2.0", err)
        client_cls.return_value.close.assert_called_once_with()

    def test_parser_skip_upload_flag(self) -> None:
        args = cli.build_parser().parse_args(["--skip-upload"])
        self.assertTrue(args.skip_upload)
        self.assertFalse(cli.build_parser().parse_args([]).skip_upload)


if __name__ == "__main__":
    unittest.main()
