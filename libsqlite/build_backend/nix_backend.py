from ..cli_logger import logger
from ..exceptions import BackendError
from ..utils import run_shell_command
from .base_backend import BaseBackend


class NixBackend(BaseBackend):
    """Cross-compile the library with ``nix build --system <target>``."""

    name = "nix"

    def __init__(self, flake=".", attribute="libsqlite3", cwd=None, verbose=False):
        self.flake = flake
        self.attribute = attribute
        self.cwd = cwd
        self.verbose = verbose

    @property
    def installable(self):
        return f"{self.flake}#{self.attribute}"

    def build(self, target_id):
        command = ["nix", "build", "--system", target_id, self.installable, "--no-link"]
        _, stderr, returncode = run_shell_command(command, stream_output=self.verbose, cwd=self.cwd)
        if returncode != 0 and stderr.strip():
            logger.debug(f"nix build {target_id}: {stderr.strip().splitlines()[-1]}")
        return returncode

    def evaluate(self, target_id):
        command = ["nix", "eval", "--system", target_id, self.installable, "--raw"]
        stdout, stderr, returncode = run_shell_command(command, cwd=self.cwd)
        if returncode != 0:
            raise BackendError(f"Failed to get store path for {target_id}: {stderr.strip()}")
        return stdout.strip()

    def _run_app(self, app):
        stdout, stderr, returncode = run_shell_command(["nix", "run", f"{self.flake}#{app}"], cwd=self.cwd)
        if returncode != 0:
            raise BackendError(f"'nix run {self.flake}#{app}' failed: {stderr.strip()}")
        return stdout.strip()

    def print_path(self):
        """Path of the library in the development environment."""
        return self._run_app("print-path")

    def print_version(self):
        """SQLite version the flake currently builds."""
        return self._run_app("print-version")
