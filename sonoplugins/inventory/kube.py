"""A small Kubernetes API client configured from a kubeconfig or the pod environment."""

from __future__ import annotations

import atexit
import base64
import binascii
import json
import os
import tempfile
from pathlib import Path

import requests
import yaml

DEFAULT_TIMEOUT = 30.0
SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")

_temporary_files: list[str] = []


def _remove_temporary_files() -> None:
    for path in _temporary_files:
        try:
            os.unlink(path)
        except OSError:
            pass


atexit.register(_remove_temporary_files)


class KubeConfigError(Exception):
    """Raised when no usable client configuration can be built."""


class KubeError(Exception):
    """Raised when a request to the API server fails."""


def _materialize(encoded: str) -> str:
    try:
        raw = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
        raise KubeConfigError(f"invalid base64 data in kubeconfig: {exc}") from exc
    with tempfile.NamedTemporaryFile(delete=False, suffix=".pem") as handle:
        handle.write(raw)
    _temporary_files.append(handle.name)
    return handle.name


def _kubeconfig_path(path: str | os.PathLike | None) -> Path | None:
    if path is not None:
        return Path(path)
    env = os.environ.get("KUBECONFIG", "")
    for candidate in filter(None, env.split(os.pathsep)):
        if Path(candidate).is_file():
            return Path(candidate)
    default = Path.home() / ".kube" / "config"
    return default if default.is_file() else None


def _named(entries, name: str, kind: str) -> dict:
    for entry in entries or []:
        if entry.get("name") == name:
            return entry.get(kind) or {}
    raise KubeConfigError(f"{kind} {name!r} not found in kubeconfig")


class KubeClient:
    """Lists Kubernetes resources over the REST API."""

    def __init__(self, server: str, session: requests.Session | None = None):
        self.server = server.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = DEFAULT_TIMEOUT

    @classmethod
    def from_kubeconfig(cls, path=None) -> "KubeClient":
        """Build a client from the current context of a kubeconfig file."""
        config_path = _kubeconfig_path(path)
        if config_path is None:
            raise KubeConfigError("no kubeconfig file found")
        try:
            config = yaml.safe_load(config_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise KubeConfigError(f"unable to read kubeconfig {config_path}: {exc}") from exc

        base = config_path.parent

        def resolve(value: str) -> str:
            return str(base / value) if not os.path.isabs(value) else value

        context_name = config.get("current-context")
        if not context_name:
            raise KubeConfigError("no current context is set in kubeconfig")
        context = _named(config.get("contexts"), context_name, "context")
        cluster = _named(config.get("clusters"), context.get("cluster", ""), "cluster")
        user = _named(config.get("users"), context.get("user", ""), "user") if context.get("user") else {}

        server = cluster.get("server")
        if not server:
            raise KubeConfigError(f"cluster {context.get('cluster')!r} has no server")

        session = requests.Session()
        if cluster.get("insecure-skip-tls-verify"):
            session.verify = False
        elif cluster.get("certificate-authority-data"):
            session.verify = _materialize(cluster["certificate-authority-data"])
        elif cluster.get("certificate-authority"):
            session.verify = resolve(cluster["certificate-authority"])

        token = user.get("token")
        if not token and user.get("tokenFile"):
            try:
                token = Path(resolve(user["tokenFile"])).read_text().strip()
            except OSError as exc:
                raise KubeConfigError(f"unable to read token file: {exc}") from exc
        if token:
            session.headers["Authorization"] = f"Bearer {token}"
        elif user.get("username"):
            session.auth = (user["username"], user.get("password", ""))

        cert = None
        if user.get("client-certificate-data"):
            cert = _materialize(user["client-certificate-data"])
        elif user.get("client-certificate"):
            cert = resolve(user["client-certificate"])
        key = None
        if user.get("client-key-data"):
            key = _materialize(user["client-key-data"])
        elif user.get("client-key"):
            key = resolve(user["client-key"])
        if cert and key:
            session.cert = (cert, key)
        elif cert:
            session.cert = cert

        return cls(server, session)

    @classmethod
    def in_cluster(cls) -> "KubeClient":
        """Build a client from the service account mounted into a pod."""
        host = os.environ.get("KUBERNETES_SERVICE_HOST", "")
        port = os.environ.get("KUBERNETES_SERVICE_PORT", "")
        if not host or not port:
            raise KubeConfigError(
                "unable to load in-cluster configuration, KUBERNETES_SERVICE_HOST "
                "and KUBERNETES_SERVICE_PORT must be defined"
            )
        try:
            token = (SERVICE_ACCOUNT_DIR / "token").read_text().strip()
        except OSError as exc:
            raise KubeConfigError(f"unable to read service account token: {exc}") from exc

        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {token}"
        ca_file = SERVICE_ACCOUNT_DIR / "ca.crt"
        if ca_file.is_file():
            session.verify = str(ca_file)
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return cls(f"https://{host}:{port}", session)

    def list(self, group_version: str, resource: str, namespace=None, label_selector=None) -> list:
        """List objects of a resource and return the item dictionaries."""
        prefix = "/api" if group_version == "v1" else "/apis"
        path = f"{prefix}/{group_version}"
        if namespace:
            path += f"/namespaces/{namespace}"
        path += f"/{resource}"
        params = {"labelSelector": label_selector} if label_selector else None

        try:
            response = self.session.get(self.server + path, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise KubeError(f"listing {resource}: {exc}") from exc
        if response.status_code != 200:
            raise KubeError(
                f"listing {resource}: unexpected status {response.status_code} {response.reason}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise KubeError(f"listing {resource}: invalid response body: {exc}") from exc
        return body.get("items") or []


def get_kube_client() -> KubeClient:
    """Build a client from the default kubeconfig, falling back to in-cluster settings."""
    try:
        path = _kubeconfig_path(None)
        if path is not None:
            return KubeClient.from_kubeconfig(path)
        return KubeClient.in_cluster()
    except KubeConfigError as exc:
        raise KubeConfigError(f"unable to create Client Config: {json.dumps(str(exc))}") from exc