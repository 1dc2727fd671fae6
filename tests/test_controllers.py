import pytest

from sonoplugins.inventory.controllers import (
    CronJob,
    DaemonSet,
    Deployment,
    Job,
    ReplicaSet,
    ReplicationController,
    StatefulSet,
)
from sonoplugins.inventory.pod import Pod


def _pod(name):
    return Pod({"metadata": {"name": name, "uid": f"uid-{name}"}, "status": {"phase": "Running"}})


def test_job_status_message_and_details():
    job = Job(
        {
            "metadata": {"name": "j1"},
            "spec": {"selector": {"matchLabels": {"a": "b"}}, "backoffLimit": 6},
            "status": {"active": 1, "succeeded": 2, "failed": 3},
        }
    )
    assert job.status_message() == "Running: 1, Succeeded: 2, Failed: 3"
    item = job.generate_sonobuoy_item()
    assert item.name == "j1"
    assert item.status == job.status_message()
    assert item.metadata == {}
    assert item.details["selector"] == {"matchLabels": {"a": "b"}}
    assert item.details["backoffLimit"] == 6
    assert "parallelism" not in item.details
    assert "completions" not in item.details


def test_job_missing_counts_default_to_zero():
    assert Job({}).status_message() == "Running: 0, Succeeded: 0, Failed: 0"


def test_job_items_are_its_pods():
    job = Job({"metadata": {"name": "j"}}, pods={"p1": _pod("p1"), "p2": _pod("p2")})
    names = [child.name for child in job.generate_sonobuoy_item().items]
    assert names == ["p1", "p2"]


def test_cronjob_without_schedule_time():
    cron = CronJob({"metadata": {"name": "c"}, "status": {"active": [{"name": "x"}]}})
    assert cron.status_message() == "Active: 1, Last Schedule: <nil>"


def test_cronjob_with_schedule_time():
    cron = CronJob({"status": {"lastScheduleTime": "2020-01-02T03:04:05Z"}})
    assert cron.status_message() == "Active: 0, Last Schedule: 2020-01-02 03:04:05 +0000 UTC"


def test_cronjob_item_contains_jobs_and_labels():
    job = Job({"metadata": {"name": "child"}})
    cron = CronJob(
        {
            "metadata": {"name": "c", "uid": "u1", "labels": {"app": "x"}},
            "spec": {"schedule": "*/5 * * * *", "successfulJobsHistoryLimit": 3},
        },
        jobs={"child": job},
    )
    item = cron.generate_sonobuoy_item()
    assert item.metadata == {"kind": "CronJob", "uid": "u1"}
    assert item.details["schedule"] == "*/5 * * * *"
    assert item.details["successfulJobHistoryLimit"] == 3
    assert item.details["labels"] == {"app": "x"}
    assert [child.name for child in item.items] == ["child"]


def test_deployment_status_message_and_no_item_status():
    dep = Deployment(
        {
            "metadata": {"name": "d", "uid": "u"},
            "spec": {"replicas": 3, "strategy": {"type": "RollingUpdate"}},
            "status": {"updatedReplicas": 2, "replicas": 3, "availableReplicas": 1},
        }
    )
    assert dep.status_message() == "Desired: 3, Up-to-date: 2, Total: 3, Available: 1"
    item = dep.generate_sonobuoy_item()
    assert item.status == ""
    assert "status" not in item.to_dict()
    assert item.details["replicas"] == 3
    assert item.details["deploymentStrategy"] == {"type": "RollingUpdate"}
    assert item.details["paused"] is False
    assert item.metadata == {"kind": "Deployment", "uid": "u"}


def test_deployment_optional_fields_absent():
    item = Deployment({"metadata": {"name": "d"}}).generate_sonobuoy_item()
    for key in ("replicas", "progressDeadlineSeconds", "revisionHistoryLimit", "selector", "nodeSelector", "labels"):
        assert key not in item.details


def test_deployment_items_are_replica_sets():
    rs = ReplicaSet({"metadata": {"name": "rs1"}}, pods={"p": _pod("p")})
    dep = Deployment({"metadata": {"name": "d"}}, replica_sets={"rs1": rs})
    item = dep.generate_sonobuoy_item()
    assert [child.name for child in item.items] == ["rs1"]
    assert [grand.name for grand in item.items[0].items] == ["p"]


@pytest.mark.parametrize("cls,kind", [(ReplicaSet, "ReplicaSet"), (ReplicationController, "ReplicationController")])
def test_replica_controllers(cls, kind):
    obj = {
        "metadata": {"name": "r", "uid": "u"},
        "spec": {
            "replicas": 4,
            "selector": {"app": "x"},
            "template": {"spec": {"nodeSelector": {"disk": "ssd"}}},
        },
        "status": {"replicas": 3, "readyReplicas": 2, "availableReplicas": 1},
    }
    controller = cls(obj)
    assert controller.status_message() == "Desired: 4, Current: 3, Ready: 2, Available: 1"
    item = controller.generate_sonobuoy_item()
    assert item.metadata == {"kind": kind, "uid": "u"}
    assert item.details["replicas"] == 4
    assert item.details["selector"] == {"app": "x"}
    assert item.details["nodeSelector"] == {"disk": "ssd"}
    assert item.details["minReadySeconds"] == 0


def test_statefulset():
    ss = StatefulSet(
        {
            "metadata": {"name": "s", "uid": "u"},
            "spec": {"replicas": 3, "serviceName": "svc", "revisionHistoryLimit": 10},
            "status": {"replicas": 3, "currentReplicas": 2, "readyReplicas": 1},
        },
        pods={"s-0": _pod("s-0")},
    )
    assert ss.status_message() == "Desired: 3, Total: 3, Current: 2, Ready: 1"
    item = ss.generate_sonobuoy_item()
    assert item.details["serviceName"] == "svc"
    assert item.details["revisionHistoryLimit"] == 10
    assert item.metadata["kind"] == "StatefulSet"
    assert [child.name for child in item.items] == ["s-0"]


def test_daemonset():
    ds = DaemonSet(
        {
            "metadata": {"name": "ds", "uid": "u", "labels": {"k": "v"}},
            "spec": {"updateStrategy": {"type": "OnDelete"}},
            "status": {
                "currentNumberScheduled": 5,
                "desiredNumberScheduled": 6,
                "numberReady": 4,
                "updatedNumberScheduled": 3,
                "numberAvailable": 2,
            },
        }
    )
    assert ds.status_message() == "Current: 5, Desired: 6, Ready: 4, Up-to-date: 3, Available: 2"
    item = ds.generate_sonobuoy_item()
    assert item.status == ds.status_message()
    assert item.details["updateStrategy"] == {"type": "OnDelete"}
    assert item.details["labels"] == {"k": "v"}
    assert "revisionHistoryLimit" not in item.details
    assert item.to_dict()["meta"] == {"kind": "DaemonSet", "uid": "u"}
    assert item.items == []