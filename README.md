# sonoplugins

Tools for writing and running Sonobuoy plugins against a Kubernetes cluster.

The package has three parts:

- `sonoplugins.helper`: building blocks for plugins. `SonobuoyResultsWriter`
  writes results in the Sonobuoy YAML results format, `ProgressReporter`
  posts progress updates to the local progress endpoint, and `done()`
  archives the results directory and writes the done file.
- `sonoplugins.requirements`: the `requirements-check` command, which checks
  a cluster against a list of requirements (Kubernetes version, provider,
  node capacity, deployment annotation versions).
- `sonoplugins.inventory`: the `cluster-inventory` command, which collects an
  inventory of the cluster's nodes, control plane, CNI configuration, network,
  namespaces and workloads.

## Installation

```
pip install sonoplugins
```

## Writing a plugin with the helpers

```python
from sonoplugins.helper.progress import ProgressReporter
from sonoplugins.helper.results_writer import SonobuoyResultsWriter

writer = SonobuoyResultsWriter.from_env()
reporter = ProgressReporter.from_env(total=2)

reporter.start_test("first")
writer.add_test("first", "passed", None, "all good")
reporter.stop_test("first", failed=False, skipped=False, error=None)

reporter.start_test("second")
error = RuntimeError("boom")
writer.add_test("second", "failed", error, "")
reporter.stop_test("second", failed=True, skipped=False, error=error)

# Writes sonobuoy_results.yaml, archives the results directory into
# results.tar.gz and writes the done file naming that archive.
writer.done(write_done_file=True)
```

The overall status written is `failed` if any test failed, `passed`
otherwise, and `unknown` when no tests were added.

Environment variables used:

- `SONOBUOY_RESULTS_DIR`: where results are written. When unset the results
  YAML goes to standard output and no archive or done file is produced.
- `SONOBUOY_PROGRESS_PORT`: port of the progress endpoint on `localhost`.
  When unset, progress updates are not sent. `send_message` raises
  `ProgressError` when an update cannot be delivered;
  `send_message_async` sends on a background thread and logs failures.

## Checking cluster requirements

```
requirements-check
```

reads `input.json` from the current directory (or from
`/tmp/sonobuoy/config/input.json` when `SONOBUOY_K8S_VERSION` is set), runs
each check and records one test per check with the results writer and the
progress reporter. Checks run shell pipelines through `/bin/bash` using
`kubectl` and `jq`, which must be on the path. A check of an unknown type
stops the run with exit status 1. An input file looks like this:

```json
[
  {"meta": {"name": "k8s is new enough", "type": "k8s_version"},
   "k8s_version": {"version": "1.21.0"}},
  {"meta": {"name": "runs on a known provider", "type": "provider"},
   "provider": {"in": ["aws", "gce"], "not_in": []}},
  {"meta": {"name": "worker capacity", "type": "node"},
   "node": {"label": "role=worker", "cpu": "2", "memory": "4Gi", "count": 3}},
  {"meta": {"name": "app version", "type": "deployment"},
   "deployment": {"name": "my-app", "annotation": "version", "version": "1.2.0"}}
]
```

In a `node` check the memory requirement is only applied when a CPU
requirement is also given.

## Taking a cluster inventory

```
cluster-inventory run --sonobuoy-report results.yaml --json-report inventory.json
```

connects to the cluster and writes either or both reports: a Sonobuoy
results tree describing the cluster, and the inventory as JSON. The client
is built from the first existing file named in `KUBECONFIG` or from
`~/.kube/config`; with neither it uses the pod's service account. CNI
information is read from `/etc/cni/net.d/`, and each plugin named there must
be an executable in `/opt/cni/bin`. External DNS is reported as working when
an external host name resolves.

## Limitations

The kubeconfig reader understands bearer tokens (inline or from a token
file), user name and password, and client certificates. It does not run
exec or auth-provider credential plugins, so clusters that rely on them must
be reached with a token or certificate instead.