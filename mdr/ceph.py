from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

from .errors import CephCommandError
from .settings import settings


logger = logging.getLogger(__name__)


class CephClient:
    """Runs ``ceph`` CLI commands against the storage cluster.

    Every command is issued with ``--format json``; a non-zero exit status or a
    missing binary raises CephCommandError.
    """

    def __init__(
        self,
        cluster: str,
        ceph_bin: str | None = None,
        conf: str | None = None,
        keyring: str | None = None,
        user: str | None = None,
        timeout_s: int | None = None,
    ):
        self.cluster = cluster
        self.ceph_bin = ceph_bin or settings.ceph_bin
        self.conf = conf if conf is not None else settings.ceph_conf
        self.keyring = keyring if keyring is not None else settings.ceph_keyring
        self.user = user or settings.ceph_user
        timeout = settings.ceph_timeout_s if timeout_s is None else timeout_s
        self.timeout_s = timeout if timeout > 0 else None

    def _base_args(self) -> list[str]:
        args = [self.ceph_bin, f"--cluster={self.cluster}", f"--name={self.user}"]
        if self.conf:
            args.append(f"--conf={self.conf}")
        if self.keyring:
            args.append(f"--keyring={self.keyring}")
        return args

    def command(self, *args: str) -> list[str]:
        return [*self._base_args(), *args, "--format", "json"]

    def run(self, *args: str) -> str:
        command = self.command(*args)
        logger.debug("running %s", " ".join(command))
        try:
            proc = subprocess.run(command, capture_output=True, text=True, timeout=self.timeout_s, check=False)
        except FileNotFoundError as e:
            raise CephCommandError(command, None, f"{self.ceph_bin} not found") from e
        except subprocess.TimeoutExpired as e:
            raise CephCommandError(command, None, f"timed out after {self.timeout_s}s") from e
        if proc.returncode != 0:
            raise CephCommandError(command, proc.returncode, proc.stderr or proc.stdout)
        return proc.stdout

    def run_json(self, *args: str) -> Any:
        out = self.run(*args)
        if not out.strip():
            return None
        try:
            return json.loads(out)
        except ValueError as e:
            raise CephCommandError(self.command(*args), 0, f"invalid JSON output: {out[:200]!r}") from e

    def auth_get_or_create_key(self, principal: str, caps: list[str]) -> str:
        """Return the key for ``principal``, creating the user with ``caps`` if needed."""
        args = ("auth", "get-or-create-key", principal, *caps)
        data = self.run_json(*args)
        if not isinstance(data, dict) or not data.get("key"):
            raise CephCommandError(self.command(*args), 0, f"no key in output: {data!r}")
        return str(data["key"])

    def mgr_module_enable(self, name: str, force: bool = True) -> None:
        args = ["mgr", "module", "enable", name]
        if force:
            args.append("--force")
        self.run(*args)

    def mgr_module_disable(self, name: str) -> None:
        self.run("mgr", "module", "disable", name)
