import pytest

from sloopkit.nodededupe import node_has_major_update, normalize_node

NODE_TEMPLATE = """{
  "metadata": {
    "name": "somehostname",
    "uid": "1f9c4fdc-df86-11e6-8ec4-141877585f71",
    "resourceVersion": "{{.ResourceVersion}}"
  },
  "status": {
    "conditions": [
      {
        "type": "OutOfDisk",
        "status": "{{.OutOfDisk}}",
        "lastHeartbeatTime": "{{.LastHeartbeatTime}}",
        "lastTransitionTime": "2019-07-19T15:35:56Z",
        "reason": "KubeletHasSufficientDisk"
      },
      {
        "type": "MemoryPressure",
        "status": "False",
        "lastHeartbeatTime": "{{.LastHeartbeatTime}}",
        "lastTransitionTime": "2019-07-19T15:35:56Z",
        "reason": "KubeletHasSufficientMemory"
      }
    ]
  }
}
"""

SOME_RESOURCE_VERSION1 = "873691308"
SOME_RESOURCE_VERSION2 = "873691358"
SOME_HEARTBEAT_TIME1 = "2019-07-23T17:18:10Z"
SOME_HEARTBEAT_TIME2 = "2019-07-23T17:18:20Z"

EXPECTED_CLEAN_NODE = (
    '{"metadata":{"name":"somehostname","resourceVersion":"removed","uid":"1f9c4fdc-df86-11e6-8ec4-141877585f71"},"status":{"conditions":['
    '{"lastHeartbeatTime":"removed","lastTransitionTime":"2019-07-19T15:35:56Z","reason":"KubeletHasSufficientDisk","status":"False","type":"OutOfDisk"},'
    '{"lastHeartbeatTime":"removed","lastTransitionTime":"2019-07-19T15:35:56Z","reason":"KubeletHasSufficientMemory","status":"False","type":"MemoryPressure"}]}}'
)


def make_node(resource_version, heartbeat, out_of_disk):
    return (
        NODE_TEMPLATE.replace("{{.ResourceVersion}}", resource_version)
        .replace("{{.LastHeartbeatTime}}", heartbeat)
        .replace("{{.OutOfDisk}}", out_of_disk)
    )


def test_normalize_node():
    node = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "False")
    assert normalize_node(node) == EXPECTED_CLEAN_NODE


def test_same_node_not_different():
    node = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "False")
    assert node_has_major_update(node, node) is False


def test_only_time_and_resource_version_differ():
    node1 = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "False")
    node2 = make_node(SOME_RESOURCE_VERSION2, SOME_HEARTBEAT_TIME2, "False")
    assert node_has_major_update(node1, node2) is False


def test_out_of_disk_differs():
    node1 = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "False")
    node2 = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "True")
    assert node_has_major_update(node1, node2) is True


def test_invalid_json_raises():
    with pytest.raises(ValueError, match="Failed to parse json"):
        normalize_node('{"metadata":')


def test_invalid_json_in_comparison_raises():
    node = make_node(SOME_RESOURCE_VERSION1, SOME_HEARTBEAT_TIME1, "False")
    with pytest.raises(ValueError):
        node_has_major_update(node, "not json")


def test_missing_metadata_is_created():
    assert normalize_node("{}") == '{"metadata":{"resourceVersion":"removed"}}'


def test_metadata_not_object_raises():
    with pytest.raises(ValueError):
        normalize_node('{"metadata": 3}')


def test_html_characters_escaped():
    assert normalize_node('{"metadata":{"name":"a<b"}}') == (
        '{"metadata":{"name":"a\\u003cb","resourceVersion":"removed"}}'
    )