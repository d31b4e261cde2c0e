import json

import pytest

from installctl.modules.bmh import (
    STATUS_ANNOTATION,
    BMHStatusSynchronizer,
    StatusAnnotationError,
    unmarshal_status_annotation,
    utc_timestamp,
)
from installctl.modules.k8s import KubeClientError
from installctl.tests.conftest import make_bmh

FIXED_NOW = "2026-10-19T08:00:00Z"

STATUS = {
    "operationalStatus": "OK",
    "lastUpdated": "2026-10-18T21:45:03Z",
    "hardwareProfile": "unknown",
    "provisioning": {"state": "externally provisioned", "ID": "abc"},
    "poweredOn": True,
}


def synchronizer(kube, no_sleep):
    return BMHStatusSynchronizer(kube, 1, sleep=no_sleep, now=lambda: FIXED_NOW)


def test_unmarshal_status_annotation():
    assert unmarshal_status_annotation(json.dumps(STATUS)) == STATUS
    with pytest.raises(StatusAnnotationError):
        unmarshal_status_annotation("{not json")
    with pytest.raises(StatusAnnotationError):
        unmarshal_status_annotation('["a list"]')


def test_utc_timestamp_format():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert len(stamp) == len(FIXED_NOW)


def test_annotation_is_moved_into_status(kube, no_sleep):
    bmh = make_bmh("master-0", json.dumps(STATUS), extra_annotations={"keep": "me"})

    assert synchronizer(kube, no_sleep).update_bmh_status(bmh) is False

    kube.update_bmh_status.assert_called_once_with(bmh)
    kube.update_bmh.assert_called_once_with(bmh)
    assert bmh["status"] == STATUS
    assert bmh["metadata"]["annotations"] == {"keep": "me"}


def test_second_pass_is_a_noop(kube, no_sleep):
    bmh = make_bmh("master-0", json.dumps(STATUS))
    sync = synchronizer(kube, no_sleep)

    sync.update_bmh_status(bmh)
    kube.reset_mock()

    assert sync.update_bmh_status(bmh) is True
    kube.update_bmh_status.assert_not_called()
    kube.update_bmh.assert_not_called()


def test_missing_last_updated_is_stamped(kube, no_sleep):
    bmh = make_bmh("master-1", json.dumps({"operationalStatus": "OK", "lastUpdated": ""}))

    synchronizer(kube, no_sleep).update_bmh_status(bmh)

    assert bmh["status"]["lastUpdated"] == FIXED_NOW
    assert STATUS_ANNOTATION not in bmh["metadata"]["annotations"]


def test_partial_payload_is_stamped_and_cleared(kube, no_sleep):
    bmh = make_bmh("master-2", '{"status":{"lastUpdated":""}}')
    sync = synchronizer(kube, no_sleep)

    sync.update_bmh_status(bmh)

    assert bmh["status"]["lastUpdated"] == FIXED_NOW
    assert bmh["metadata"]["annotations"] == {}
    kube.reset_mock()
    assert sync.update_bmh_status(bmh) is True
    kube.update_bmh_status.assert_not_called()


def test_existing_timestamp_is_kept(kube, no_sleep):
    bmh = make_bmh("master-0", json.dumps(STATUS))

    synchronizer(kube, no_sleep).update_bmh_status(bmh)

    assert bmh["status"]["lastUpdated"] == STATUS["lastUpdated"]


def test_decode_failure_keeps_annotation(kube, no_sleep):
    bmh = make_bmh("worker-0", "{broken")

    assert synchronizer(kube, no_sleep).update_bmh_status(bmh) is False

    kube.update_bmh_status.assert_not_called()
    assert bmh["metadata"]["annotations"][STATUS_ANNOTATION] == "{broken"


def test_status_commit_failure_keeps_annotation(kube, no_sleep):
    bmh = make_bmh("worker-0", json.dumps(STATUS))
    kube.update_bmh_status.side_effect = KubeClientError("conflict", status=409)

    synchronizer(kube, no_sleep).update_bmh_status(bmh)

    kube.update_bmh.assert_not_called()
    assert STATUS_ANNOTATION in bmh["metadata"]["annotations"]


def test_host_without_annotation_is_skipped(kube, no_sleep):
    bmh = make_bmh("worker-1")
    bmh["metadata"].pop("annotations")

    assert synchronizer(kube, no_sleep).update_bmh_status(bmh) is True
    kube.update_bmh_status.assert_not_called()


def test_pass_reports_all_updated_only_without_annotations(kube, no_sleep):
    sync = synchronizer(kube, no_sleep)

    assert sync.update_bmh_statuses([make_bmh("a"), make_bmh("b", json.dumps(STATUS))]) is False
    assert sync.update_bmh_statuses([make_bmh("a"), make_bmh("b", "")]) is True


def test_run_stops_when_provisioning_exists(kube, no_sleep):
    kube.is_metal_provisioning_exists.side_effect = [KubeClientError("timeout"), True]

    synchronizer(kube, no_sleep).run()

    kube.list_bmhs.assert_not_called()
    assert no_sleep.call_count == 2


def test_run_converges(kube, no_sleep):
    kube.is_metal_provisioning_exists.return_value = False
    annotated = make_bmh("master-0", json.dumps(STATUS))
    kube.list_bmhs.side_effect = [KubeClientError("timeout"), [annotated], [annotated]]

    synchronizer(kube, no_sleep).run()

    assert kube.list_bmhs.call_count == 3
    kube.update_bmh_status.assert_called_once()
    assert no_sleep.call_count == 3


def test_null_annotation_is_committed_as_empty_status(kube, no_sleep):
    assert unmarshal_status_annotation("null") == {}
    bmh = make_bmh("master-0", "null")

    synchronizer(kube, no_sleep).update_bmh_status(bmh)

    assert bmh["status"] == {"lastUpdated": FIXED_NOW}
    kube.update_bmh_status.assert_called_once_with(bmh)
    assert STATUS_ANNOTATION not in bmh["metadata"]["annotations"]
