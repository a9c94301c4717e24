import os
import shutil
import tempfile
import unittest
from unittest.mock import patch, MagicMock
from click.testing import CliRunner
from libsqlite import config, resolver
from libsqlite.build_backend import BaseBackend
from libsqlite.commands.sync_version import next_version
from libsqlite.exceptions import BackendError, PackagingStepFailed
from libsqlite.main import cli
from libsqlite.resolver import LibraryPath


class FakeBackend(BaseBackend):
    name = "fake"

    def __init__(self, root, failing=()):
        self.root = root
        self.failing = set(failing)

    def build(self, target_id):
        return 1 if target_id in self.failing else 0

    def evaluate(self, target_id):
        lib_dir = os.path.join(self.root, "store", target_id, "lib")
        os.makedirs(lib_dir, exist_ok=True)
        ext = "dylib" if target_id.endswith("darwin") else "so"
        real = os.path.join(lib_dir, f"libsqlite3.3.45.1.{ext}")
        with open(real, "wb") as f:
            f.write(target_id.encode())
        os.symlink(real, os.path.join(lib_dir, f"libsqlite3.{ext}"))
        return os.path.dirname(lib_dir)


class TestLibPath(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.lib_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.lib_dir)

    def _invoke(self, *args):
        with patch.object(resolver, "_default_path", LibraryPath(lib_dir=self.lib_dir)):
            return self.runner.invoke(cli, ["--path", self.lib_dir, "lib-path", *args])

    @patch("libsqlite.commands.lib_path.get_backend")
    @patch("libsqlite.platforms._platform.machine", return_value="arm64")
    @patch("libsqlite.platforms.sys", MagicMock(platform="darwin"))
    def test_prints_bundled_library_for_apple_silicon(self, mock_machine, mock_get_backend):
        expected = os.path.join(self.lib_dir, "libsqlite3-darwin-aarch64.dylib")
        with open(expected, "wb") as f:
            f.write(b"dylib")

        result = self._invoke()

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), expected)
        mock_get_backend.return_value.print_path.assert_not_called()

    @patch("libsqlite.commands.lib_path.get_backend")
    @patch("libsqlite.platforms._platform.machine", return_value="x86_64")
    @patch("libsqlite.platforms.sys", MagicMock(platform="linux"))
    def test_empty_lib_dir_falls_back_to_development_build(self, mock_machine, mock_get_backend):
        mock_get_backend.return_value.print_path.return_value = "/nix/store/abc-sqlite/lib/libsqlite3.so"

        result = self._invoke()

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), "/nix/store/abc-sqlite/lib/libsqlite3.so")
        self.assertEqual(mock_get_backend.call_args.kwargs["cwd"], self.lib_dir)

    @patch("libsqlite.commands.lib_path.get_backend")
    @patch("libsqlite.platforms._platform.machine", return_value="x86_64")
    @patch("libsqlite.platforms.sys", MagicMock(platform="linux"))
    def test_not_found_without_development_build(self, mock_machine, mock_get_backend):
        mock_get_backend.return_value.print_path.side_effect = BackendError("nix: command not found")

        result = self._invoke()

        self.assertEqual(result.exit_code, 1)
        self.assertIn("nix: command not found", result.output)
        self.assertEqual(len(result.output.strip().splitlines()), 1)

    @patch("libsqlite.commands.lib_path.get_backend")
    @patch("libsqlite.platforms._platform.machine", return_value="x86_64")
    @patch("libsqlite.platforms.sys", MagicMock(platform="linux"))
    def test_no_dev_reports_missing_library(self, mock_machine, mock_get_backend):
        result = self._invoke("--no-dev")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("libsqlite3-linux-x86_64.so", result.output)
        self.assertEqual(len(result.output.strip().splitlines()), 1)
        mock_get_backend.return_value.print_path.assert_not_called()


@patch("libsqlite.builder.logger")
@patch("libsqlite.packager.logger")
@patch("libsqlite.commands.build.logger")
class TestBuildCommand(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.test_dir = tempfile.mkdtemp()
        config.save_config({"package": {"version": "3.45.1", "module": "libsqlite_bin"}}, path=self.test_dir)
        with open(os.path.join(self.test_dir, "README.md"), "w") as f:
            f.write("# libsqlite\n")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _invoke(self, backend, *args):
        with patch("libsqlite.commands.build.get_backend", return_value=backend) as mock_get_backend:
            result = self.runner.invoke(cli, ["--path", self.test_dir, "build", *args])
        return result, mock_get_backend

    def test_build_partial_success(self, mock_cmd_logger, mock_pkg_logger, mock_builder_logger):
        backend = FakeBackend(self.test_dir, failing={"x86_64-darwin", "aarch64-linux"})
        result, mock_get_backend = self._invoke(backend)

        self.assertEqual(result.exit_code, 0, result.output)
        lib_dir = os.path.join(self.test_dir, "dist", "libsqlite_bin", "lib")
        self.assertEqual(sorted(os.listdir(lib_dir)), ["libsqlite3-darwin-aarch64.dylib", "libsqlite3-linux-x86_64.so"])
        self.assertFalse(os.path.islink(os.path.join(lib_dir, "libsqlite3-linux-x86_64.so")))
        self.assertTrue(os.path.isfile(os.path.join(self.test_dir, "dist", "pyproject.toml")))
        mock_cmd_logger.warning.assert_called_once_with("Production build complete with 2/4 targets.")
        self.assertEqual(mock_get_backend.call_args.args, ("nix",))

    def test_build_selected_target(self, mock_cmd_logger, mock_pkg_logger, mock_builder_logger):
        backend = FakeBackend(self.test_dir)
        result, _ = self._invoke(backend, "--target", "aarch64-darwin", "-j", "1", "--output", "out")

        self.assertEqual(result.exit_code, 0, result.output)
        lib_dir = os.path.join(self.test_dir, "out", "libsqlite_bin", "lib")
        self.assertEqual(os.listdir(lib_dir), ["libsqlite3-darwin-aarch64.dylib"])
        mock_cmd_logger.success.assert_called_with("Production build complete!")

    def test_build_unknown_target(self, mock_cmd_logger, mock_pkg_logger, mock_builder_logger):
        result, _ = self._invoke(FakeBackend(self.test_dir), "--target", "riscv64-linux")
        self.assertEqual(result.exit_code, 2)
        self.assertIn("riscv64-linux", result.output)

    def test_packaging_failure_exits_non_zero(self, mock_cmd_logger, mock_pkg_logger, mock_builder_logger):
        with patch("libsqlite.packager.generate_manifest", side_effect=PackagingStepFailed("manifest", "disk full")):
            result, _ = self._invoke(FakeBackend(self.test_dir))
        self.assertEqual(result.exit_code, 1)
        mock_cmd_logger.error.assert_called_once()

    def test_tool_package_name_is_refused_before_building(self, mock_cmd_logger, mock_pkg_logger, mock_builder_logger):
        config.save_config({"package": {"name": "libsqlite", "module": "libsqlite_bin"}}, path=self.test_dir)
        backend = MagicMock(spec=BaseBackend)
        result, _ = self._invoke(backend)

        self.assertEqual(result.exit_code, 1)
        backend.build.assert_not_called()
        self.assertIn("belongs to the build tool", mock_cmd_logger.error.call_args.args[0])


class TestOtherCommands(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    @patch("libsqlite.commands.targets.logger")
    def test_targets(self, mock_logger):
        result = self.runner.invoke(cli, ["targets"])
        self.assertEqual(result.exit_code, 0)
        lines = " ".join(c.args[0] for c in mock_logger.step_info.call_args_list)
        for system in ("x86_64-linux", "aarch64-linux", "x86_64-darwin", "aarch64-darwin"):
            self.assertIn(system, lines)

    def test_resolve(self):
        expected = os.path.join(self.test_dir, "libsqlite3.so")
        with open(expected, "wb") as f:
            f.write(b"so")
        result = self.runner.invoke(cli, ["--path", self.test_dir, "resolve", self.test_dir, "--platform", "freebsd", "--arch", "riscv64"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), expected)

    def test_resolve_not_found(self):
        result = self.runner.invoke(cli, ["--path", self.test_dir, "resolve", self.test_dir, "--platform", "darwin", "--arch", "arm64"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("libsqlite3-darwin-aarch64.dylib", result.output)

    @patch("libsqlite.commands.clean.logger")
    def test_clean(self, mock_logger):
        dist = os.path.join(self.test_dir, "dist", "libsqlite_bin", "lib")
        os.makedirs(dist)
        result = self.runner.invoke(cli, ["--path", self.test_dir, "clean"])
        self.assertEqual(result.exit_code, 0)
        self.assertFalse(os.path.exists(os.path.join(self.test_dir, "dist")))

    @patch("libsqlite.commands.dev_path.get_backend")
    def test_dev_path(self, mock_get_backend):
        mock_get_backend.return_value.print_path.return_value = "/nix/store/abc/lib/libsqlite3.so"
        result = self.runner.invoke(cli, ["--path", self.test_dir, "dev-path"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), "/nix/store/abc/lib/libsqlite3.so")

    @patch("libsqlite.commands.dev_path.logger")
    @patch("libsqlite.commands.dev_path.get_backend")
    def test_dev_path_failure(self, mock_get_backend, mock_logger):
        mock_get_backend.return_value.print_path.side_effect = BackendError("nix missing")
        result = self.runner.invoke(cli, ["--path", self.test_dir, "dev-path"])
        self.assertEqual(result.exit_code, 1)

    @patch("libsqlite.commands.sync_version.logger")
    @patch("libsqlite.commands.sync_version.get_backend")
    def test_sync_version_updates(self, mock_get_backend, mock_logger):
        config.save_config({"package": {"version": "3.44.0-1"}}, path=self.test_dir)
        mock_get_backend.return_value.print_version.return_value = "3.45.1"

        result = self.runner.invoke(cli, ["--path", self.test_dir, "sync-version"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(self.test_dir)["package"]["version"], "3.45.1")

    @patch("libsqlite.commands.sync_version.logger")
    @patch("libsqlite.commands.sync_version.get_backend")
    def test_sync_version_keeps_suffix(self, mock_get_backend, mock_logger):
        config.save_config({"package": {"version": "3.45.1-2"}}, path=self.test_dir)
        mock_get_backend.return_value.print_version.return_value = "3.45.1"

        result = self.runner.invoke(cli, ["--path", self.test_dir, "sync-version"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(self.test_dir)["package"]["version"], "3.45.1-2")

    @patch("libsqlite.commands.version.logger")
    @patch("libsqlite.commands.version.importlib.metadata.version", return_value="0.1.0")
    def test_version(self, mock_version, mock_logger):
        result = self.runner.invoke(cli, ["version"])
        self.assertEqual(result.exit_code, 0)
        mock_logger.info.assert_called_once_with("libsqlite 0.1.0")
        mock_version.assert_called_once_with("libsqlite")

    def test_next_version(self):
        self.assertIsNone(next_version("3.45.1", "3.45.1"))
        self.assertIsNone(next_version("3.45.1-beta", "3.45.1"))
        self.assertEqual(next_version("3.44.0", "3.45.1"), "3.45.1")

if __name__ == "__main__":
    unittest.main()
