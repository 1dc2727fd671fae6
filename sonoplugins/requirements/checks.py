"""The requirement checks and the commands they run against the cluster."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from itertools import zip_longest
from typing import Callable

from sonoplugins.requirements.types import Check, CheckResult, CheckType, NodeSpec

logger = logging.getLogger(__name__)

Checker = Callable[[Check], CheckResult]


class CheckError(Exception):
    """Raised when a check cannot be evaluated; the check counts as failed."""


class CommandError(CheckError):
    """Raised when a shell command exits unsuccessfully."""

    def __init__(self, message: str, output: bytes = b""):
        super().__init__(message)
        self.output = output


class UnknownCheckTypeError(LookupError):
    """Raised for a check type that has no checker."""

    def __init__(self, check_type):
        super().__init__(f"Unknown check type: {check_type}")
        self.check_type = check_type

    def __str__(self) -> str:
        return self.args[0]


def run_command(command: str) -> bytes:
    """Run a command through bash and return its combined output, trimmed."""
    args = ["/bin/bash", "-c", command]
    logger.debug("Command: %s", command)
    try:
        proc = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False)
    except OSError as exc:
        logger.debug("Error returned: %s", exc)
        raise CommandError(str(exc)) from exc
    output = (proc.stdout or b"").strip()
    logger.debug("Output: %s", output.decode("utf-8", "replace"))
    if proc.returncode != 0:
        logger.debug("Error returned: exit status %s", proc.returncode)
        raise CommandError(f"exit status {proc.returncode}", output)
    return output


_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+))"
    r"(?:(?P<binary>Ki|Mi|Gi|Ti|Pi|Ei)|(?P<exponent>[eE][+-]?[0-9]+)|(?P<decimal>[numkMGTPE]))?$"
)
_BINARY_POWERS = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL_EXPONENTS = {"n": -9, "u": -6, "m": -3, "k": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18}


def parse_quantity(value: str) -> Decimal:
    """Parse a Kubernetes resource quantity such as ``500m``, ``4Gi`` or ``1e3``."""
    match = _QUANTITY_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"quantities must match the regular expression: {value!r}")
    try:
        number = Decimal(match["number"])
    except InvalidOperation as exc:
        raise ValueError(f"invalid quantity {value!r}") from exc
    if match["binary"]:
        return number * Decimal(1024 ** _BINARY_POWERS[match["binary"]])
    if match["exponent"]:
        return number.scaleb(int(match["exponent"][1:]))
    if match["decimal"]:
        return number.scaleb(_DECIMAL_EXPONENTS[match["decimal"]])
    return number


_VERSION_RE = re.compile(
    r"^v?(?P<segments>[0-9]+(?:\.[0-9]+)*?)"
    r"(?:-(?P<pre>[0-9]+[0-9A-Za-z\-~]*(?:\.[0-9A-Za-z\-~]+)*)"
    r"|-?(?P<alpha>[A-Za-z\-~]+[0-9A-Za-z\-~]*(?:\.[0-9A-Za-z\-~]+)*))?"
    r"(?:\+(?P<meta>[0-9A-Za-z\-~]+(?:\.[0-9A-Za-z\-~]+)*))?$"
)


def _compare_prerelease(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return 1
    if not right:
        return -1
    for a, b in zip_longest(left.split("."), right.split(".")):
        if a == b:
            continue
        if a is None:
            return -1
        if b is None:
            return 1
        a_digit, b_digit = a.isdigit(), b.isdigit()
        if a_digit and b_digit:
            if int(a) != int(b):
                return -1 if int(a) < int(b) else 1
            continue
        if a_digit:
            return -1
        if b_digit:
            return 1
        return -1 if a < b else 1
    return 0


@dataclass(frozen=True)
class _Version:
    segments: tuple[int, ...]
    pre: str = ""
    meta: str = ""

    @classmethod
    def parse(cls, text: str) -> "_Version":
        match = _VERSION_RE.match(text)
        if match is None:
            raise ValueError(f"Malformed version: {text}")
        segments = [int(part) for part in match["segments"].split(".")]
        segments += [0] * (3 - len(segments))
        return cls(tuple(segments), match["pre"] or match["alpha"] or "", match["meta"] or "")

    def compare(self, other: "_Version") -> int:
        for a, b in zip_longest(self.segments, other.segments, fillvalue=0):
            if a != b:
                return -1 if a < b else 1
        return _compare_prerelease(self.pre, other.pre)

    def __str__(self) -> str:
        text = ".".join(str(part) for part in self.segments)
        if self.pre:
            text += f"-{self.pre}"
        if self.meta:
            text += f"+{self.meta}"
        return text


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _get_k8s_version() -> str:
    return run_command("kubectl version -o json|jq .serverVersion.gitVersion -r").decode("utf-8", "replace")


def check_k8s_version(check: Check) -> CheckResult:
    """Compare the server's Kubernetes version with the wanted one."""
    server_text = _get_k8s_version()
    try:
        server = _Version.parse(server_text)
    except ValueError as exc:
        raise CheckError(f"failed to parse server version {_quote(server_text)}: {exc}") from exc
    wanted_text = check.k8s_version.version
    try:
        wanted = _Version.parse(wanted_text)
    except ValueError as exc:
        raise CheckError(f"failed to parse server version {_quote(wanted_text)}: {exc}") from exc

    if check.k8s_version.exact:
        return CheckResult(fail=server.compare(wanted) == 0)
    return CheckResult(fail=server.compare(wanted) < 0)


def _get_provider() -> str:
    # Relies on the providerID of the nodes, which not every provider sets.
    output = run_command(
        "kubectl get nodes -o json|jq '.items[]|.spec.providerID' -r| cut -d : -f1|sort|uniq"
    )
    return output.decode("utf-8", "replace")


def check_provider(check: Check) -> CheckResult:
    """Pass when the cluster provider is accepted and not rejected."""
    provider = _get_provider()
    return CheckResult(fail=provider not in check.provider.in_ or provider in check.provider.not_in)


def _get_nodes(spec: NodeSpec) -> list[dict]:
    output = run_command(f"kubectl get nodes -o json -l {spec.label}")
    try:
        node_list = json.loads(output)
    except ValueError as exc:
        raise CheckError(f"failed to decode node list: {exc}") from exc
    if not isinstance(node_list, dict):
        raise CheckError("failed to decode node list: not a JSON object")
    return node_list.get("items") or []


def _desired(value: str, what: str, result: CheckResult, suffix: str) -> tuple[Decimal, str]:
    try:
        return parse_quantity(value), value
    except ValueError as exc:
        result.fail = True
        result.msgs.append(f"failed to parse desired {what} value {_quote(value)}: {exc}{suffix}")
        return Decimal(0), "0"


def _capacity(node: dict, key: str) -> tuple[Decimal, str]:
    capacity = (node.get("status") or {}).get("capacity") or {}
    value = capacity.get(key)
    if value is None:
        return Decimal(0), "0"
    try:
        return parse_quantity(str(value)), str(value)
    except ValueError as exc:
        raise CheckError(f"failed to decode node list: {exc}") from exc


def check_nodes(check: Check) -> CheckResult:
    """Check that enough labelled nodes offer the wanted CPU and memory."""
    spec = check.node
    nodes = _get_nodes(spec)
    result = CheckResult()

    want_cpu = want_memory = None
    if spec.cpu:
        want_cpu = _desired(spec.cpu, "CPU", result, "")
    # The memory requirement is only taken into account alongside a CPU requirement.
    if spec.cpu:
        want_memory = _desired(spec.memory, "memory", result, ".")

    passed_all = 0
    for node in nodes:
        name = (node.get("metadata") or {}).get("name", "")
        node_failed = False
        if want_memory is not None:
            have, have_text = _capacity(node, "memory")
            if have < want_memory[0]:
                result.msgs.append(
                    f"node {_quote(name)} failed to meet the desired memory: "
                    f"wanted {want_memory[1]} but have {have_text}."
                )
                node_failed = True
        if want_cpu is not None:
            have, have_text = _capacity(node, "cpu")
            if have < want_cpu[0]:
                result.msgs.append(
                    f"node {_quote(name)} failed to meet the desired CPU: "
                    f"wanted {want_cpu[1]} but have {have_text}."
                )
                node_failed = True
        if not node_failed:
            passed_all += 1

    if spec.count > 0 and passed_all < spec.count:
        result.fail = True
        result.msgs.append(
            f"expected {spec.count} node(s) labeled {_quote(spec.label)} to match the criteria "
            f"but only {passed_all} of {len(nodes)} did."
        )
    return result


def _get_deployment(name: str) -> dict | None:
    output = run_command(
        f"kubectl get deployments -A -o json|jq '.items[]|select(.metadata.name==\"{name}\")'"
    )
    if not output:
        return None
    try:
        deployment = json.loads(output)
    except ValueError as exc:
        raise CheckError(f"failed to decode deployment: {exc}") from exc
    if deployment is not None and not isinstance(deployment, dict):
        raise CheckError("failed to decode deployment: not a JSON object")
    return deployment


def check_deployment(check: Check) -> CheckResult:
    """Check that a deployment's annotation holds at least the wanted version."""
    spec = check.deployment
    try:
        wanted = _Version.parse(spec.version)
    except ValueError as exc:
        raise CheckError(
            f"failed to parse desired version {spec.version} as a semver value: {exc}"
        ) from exc

    deployment = _get_deployment(spec.name)
    if deployment is None:
        return CheckResult(fail=True, msgs=[f"failed to find any deployments with name {spec.name}"])

    annotations = (deployment.get("metadata") or {}).get("annotations") or {}
    value = annotations.get(spec.annotation, "")
    try:
        have = _Version.parse(value)
    except ValueError as exc:
        raise CheckError(
            f"annotation {_quote(spec.annotation)} has value {_quote(value)} "
            f"which failed to parse using semver: {exc}"
        ) from exc

    if have.compare(wanted) < 0:
        return CheckResult(fail=True, msgs=[f"wanted version >= {wanted} but got {have}"])
    return CheckResult()


_CHECKERS: dict[CheckType, Checker] = {
    CheckType.K8S_VERSION: check_k8s_version,
    CheckType.PROVIDER: check_provider,
    CheckType.NODE: check_nodes,
    CheckType.DEPLOYMENT: check_deployment,
}


def get_checker(check_type) -> Checker:
    """Return the checker for a check type."""
    try:
        return _CHECKERS[check_type]
    except (KeyError, TypeError):
        raise UnknownCheckTypeError(check_type) from None