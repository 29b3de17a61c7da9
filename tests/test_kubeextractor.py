from datetime import datetime, timedelta, timezone

import pytest

from sloopkit.kubeextractor import (
    EVENT_KIND,
    NAMESPACE_KIND,
    NODE_KIND,
    ZERO_TIME,
    KubeInvolvedObject,
    KubeMetadata,
    KubeMetadataOwnerReference,
    extract_event_info,
    extract_involved_object,
    extract_metadata,
    get_involved_object_name_from_event_name,
    is_cluster_scoped_resource,
)

SOME_FIRST_SEEN = datetime(2019, 8, 29, 21, 24, 55, tzinfo=timezone.utc)
SOME_LAST_SEEN = datetime(2019, 8, 30, 16, 47, 45, tzinfo=timezone.utc)


def test_involved_object_output_correct():
    payload = '{"involvedObject":{"kind":"ReplicaSet","namespace":"namespace1","name":"name1","uid":"uid1"}}'
    expected = KubeInvolvedObject(kind="ReplicaSet", name="name1", namespace="namespace1", uid="uid1")
    assert extract_involved_object(payload) == expected


def test_involved_object_invalid_payload():
    payload = '{"involvedObject":{"name":"name1","namespace":"namespace1","selfLink":"link1"}'
    with pytest.raises(ValueError):
        extract_involved_object(payload)


def test_involved_object_additional_fields():
    payload = (
        '{"metadata":{"name":"name2","namespace":"namespace2","uid":"uid2"},'
        '"involvedObject":{"kind":"Pod","name":"name1","namespace":"namespace1","uid":"uid1"}}'
    )
    expected = KubeInvolvedObject(kind="Pod", name="name1", namespace="namespace1", uid="uid1")
    assert extract_involved_object(payload) == expected


def test_event_info_output_correct():
    payload = '{"reason":"failed","firstTimestamp": "2019-08-29T21:24:55Z","lastTimestamp": "2019-08-30T16:47:45Z","count": 13954}'
    result = extract_event_info(payload)
    assert result.reason == "failed"
    assert result.first_timestamp == SOME_FIRST_SEEN
    assert result.last_timestamp == SOME_LAST_SEEN
    assert result.count == 13954


def test_event_info_missing_fields_ignored():
    payload = '{"metadata":{"name":"name1","uid":"uid1","resourceVersion":"123","creationTimestamp":"2019-07-12T20:12:12Z"}}'
    result = extract_event_info(payload)
    assert result.reason == ""
    assert result.count == 0
    assert result.first_timestamp == ZERO_TIME
    assert result.last_timestamp == ZERO_TIME


def test_event_info_with_offset_timestamp():
    payload = '{"firstTimestamp": "2019-08-29T23:24:55+02:00","lastTimestamp": "2019-08-30T16:47:45.5Z"}'
    result = extract_event_info(payload)
    assert result.first_timestamp == SOME_FIRST_SEEN
    assert result.last_timestamp == SOME_LAST_SEEN + timedelta(milliseconds=500)


def test_event_info_bad_count_type():
    with pytest.raises(ValueError):
        extract_event_info('{"count": "many"}')


def test_event_info_invalid_json():
    with pytest.raises(ValueError):
        extract_event_info('{"reason":')


def test_involved_object_name_invalid():
    with pytest.raises(ValueError, match="unexpected format"):
        get_involved_object_name_from_event_name("xxx")


def test_involved_object_name_valid():
    assert get_involved_object_name_from_event_name("xxx.abc") == "xxx"


def test_involved_object_name_host_name():
    assert (
        get_involved_object_name_from_event_name("somehost.somedomain.com.abc")
        == "somehost.somedomain.com"
    )


def test_cluster_scoped_true():
    assert is_cluster_scoped_resource(NODE_KIND) is True
    assert is_cluster_scoped_resource(NAMESPACE_KIND) is True


def test_cluster_scoped_false():
    assert is_cluster_scoped_resource("someKind") is False
    assert is_cluster_scoped_resource(EVENT_KIND) is False


def test_metadata_output_correct():
    payload = """{"metadata":
        {
            "name":"name1",
            "namespace":"namespace1",
            "selfLink":"link1",
            "uid":"uid1",
            "resourceVersion":"123",
            "creationTimestamp":"2019-07-12T20:12:12Z",
            "ownerReferences": [
             {
               "kind": "Deployment",
               "name": "deployment1",
               "uid": "uid0"
             }]
        }
    }"""
    expected = KubeMetadata(
        name="name1",
        namespace="namespace1",
        uid="uid1",
        self_link="link1",
        resource_version="123",
        creation_timestamp="2019-07-12T20:12:12Z",
        owner_references=[KubeMetadataOwnerReference(kind="Deployment", name="deployment1", uid="uid0")],
    )
    assert extract_metadata(payload) == expected


def test_metadata_missing_fields_ignored():
    payload = '{"metadata":{"name":"name1","uid":"uid1","resourceVersion":"123","creationTimestamp":"2019-07-12T20:12:12Z"}}'
    expected = KubeMetadata(
        name="name1",
        namespace="",
        uid="uid1",
        self_link="",
        resource_version="123",
        creation_timestamp="2019-07-12T20:12:12Z",
    )
    assert extract_metadata(payload) == expected


def test_metadata_invalid_payload():
    payload = '{"metadata":{"name":"name1","namespace":"namespace1","selfLink":"link1"}'
    with pytest.raises(ValueError):
        extract_metadata(payload)


def test_metadata_additional_fields():
    payload = (
        '{"metadata":{"name":"name1","namespace":"namespace1","selfLink":"link1","uid":"uid1",'
        '"resourceVersion":"123","creationTimestamp":"2019-07-12T20:12:12Z"},'
        '"meta2":{"kind":"Pod","namespace":"namespace2"}}'
    )
    expected = KubeMetadata(
        name="name1",
        namespace="namespace1",
        uid="uid1",
        self_link="link1",
        resource_version="123",
        creation_timestamp="2019-07-12T20:12:12Z",
    )
    assert extract_metadata(payload) == expected


def test_metadata_field_names_case_insensitive():
    result = extract_metadata('{"Metadata":{"Name":"name1","SELFLINK":"link1"}}')
    assert result.name == "name1"
    assert result.self_link == "link1"


def test_metadata_wrong_field_type():
    with pytest.raises(ValueError):
        extract_metadata('{"metadata":{"name":5}}')