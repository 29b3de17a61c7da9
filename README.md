# sloopkit

Building blocks for keeping a history of Kubernetes watch events.

`sloopkit` works on the JSON payloads that a Kubernetes watch delivers. With it you can:

- read metadata, involved-object details and event details out of a payload;
- recognise node updates that change only heartbeat times and the resource version;
- spread an event's count over minutes, and clip it to a range of partitions;
- drop resources that match JsonLogic exclusion rules;
- write a stream of watch results to a YAML file and read it back later;
- count, list and delete keys by prefix in a small ordered key/value store.

## Installation

```
pip install sloopkit
```

To include the test dependencies:

```
pip install "sloopkit[test]"
```

## Modules

| Module | Contents |
| --- | --- |
| `sloopkit.utilities` | `parse_key` and `KeyFormatError` for keys of the form `/table/partition/kind/namespace/name/extra`; `truncate`, `contains`, `get_file_path`, `bool_to_float`; the constant `GLOG_VERBOSE` |
| `sloopkit.store` | `MemoryStore`, a thread-safe in-memory store that iterates keys in sorted order; `delete_keys_with_prefix` and `get_total_key_count` |
| `sloopkit.partitions` | `SloopKey`, `PartitionInfo`, `sloop_key_from_key`, `get_partitions_info`, `get_sorted_partition_ids`, `get_keys_for_prefix`, `print_key_histogram` |
| `sloopkit.kubeextractor` | `KubeMetadata`, `KubeMetadataOwnerReference`, `KubeInvolvedObject`, `EventInfo`; `extract_metadata`, `extract_involved_object`, `extract_event_info`, `get_involved_object_name_from_event_name`, `is_cluster_scoped_resource`; kind constants `NODE_KIND`, `NAMESPACE_KIND`, `POD_KIND`, `EVENT_KIND` |
| `sloopkit.nodededupe` | `normalize_node` and `node_has_major_update` |
| `sloopkit.eventcount` | `distribute_value`, `spread_out_events`, `compute_events_diff`, `adjust_for_available_partitions` |
| `sloopkit.watchresult` | `WatchType` (`ADD`, `UPDATE`, `DELETE`) and the `WatchResult` dataclass, with `to_dict` and `from_dict` |
| `sloopkit.playback` | `FileRecorder` and `play_file` |
| `sloopkit.jsonlogic` | `apply_logic` and `JsonLogicError` |
| `sloopkit.kubewatcher` | `KubeWatcher`, which turns add/update/delete notifications into `WatchResult`s on a queue, and `DeletedFinalStateUnknown` |

## Examples

### Reading a payload

```python
from sloopkit.kubeextractor import extract_metadata, extract_event_info

meta = extract_metadata('{"metadata": {"name": "web-1", "namespace": "prod"}}')
print(meta.name, meta.namespace)   # web-1 prod

info = extract_event_info(
    '{"reason": "Unhealthy", "type": "Warning", '
    '"firstTimestamp": "2019-08-29T21:24:55Z", '
    '"lastTimestamp": "2019-08-29T21:27:55Z", "count": 4}'
)
print(info.reason, info.count)     # Unhealthy 4
```

Malformed JSON raises `ValueError`. Missing fields take empty defaults. A timestamp that does not parse is logged and replaced by `ZERO_TIME`.

### Skipping node updates that only refresh the heartbeat

`normalize_node` sets `metadata.resourceVersion` and every `status.conditions[*].lastHeartbeatTime` to `"removed"`. It then returns compact JSON with the keys sorted. `node_has_major_update` compares two nodes in that normalised form.

```python
from sloopkit.nodededupe import node_has_major_update

if node_has_major_update(previous_node_json, current_node_json):
    keep(current_node_json)
```

### Counting events

```python
from sloopkit.eventcount import distribute_value, compute_events_diff, spread_out_events

distribute_value(8, 3)   # [3, 3, 2]

first, last, count = compute_events_diff(previous_info, new_info)
per_minute = spread_out_events(first, last, count)   # {unix_minute: count}
```

`compute_events_diff` returns the time range and the number of occurrences that are new since the previous copy of an event. `adjust_for_available_partitions` clips a range to the partitions available and scales the count by the share of the range that is kept.

### Excluding resources with rules

Rules are grouped by kind. Rules under `"_all"` apply to every kind. A resource is dropped when a rule evaluates to a result whose JSON contains `true`.

```python
import queue
from sloopkit.kubewatcher import KubeWatcher

out = queue.Queue()
rules = {"_all": [{"==": [{"var": "metadata.name"}, "noisy"]}]}
watcher = KubeWatcher(out, exclusion_rules=rules)

watcher.report_add("Service")({"metadata": {"name": "noisy"}})  # dropped
watcher.report_add("Service")({"metadata": {"name": "quiet"}})  # queued
print(out.get().payload)   # {"metadata":{"name":"quiet"}}
watcher.stop()
```

- Objects can be dicts or dataclasses.
- `report_delete` unwraps a `DeletedFinalStateUnknown`.
- `report_update` keeps only the new state.
- Once `stop` has been called, nothing more is put on the queue.
- `watch_counts` and `watch_bytes` count results by `(kind, watch type)`.
- With `enable_granular_metrics=True`, `event_counts` counts `Event` resources by involved object, reason and type.

`apply_logic` can also be used directly:

```python
from sloopkit.jsonlogic import apply_logic

apply_logic({"and": [{">": [{"var": "n"}, 1]}, {"in": ["a", "abc"]}]}, {"n": 2})  # True
```

An unknown operator or a rule that cannot be evaluated raises `JsonLogicError`.

### Recording and replaying a stream

```python
import queue
from sloopkit.playback import FileRecorder, play_file

inbox = queue.Queue()
with FileRecorder("capture.yaml", inbox):
    inbox.put(some_watch_result)
# leaving the block ends the stream and writes the file

replay = queue.Queue()
n = play_file(replay, "capture.yaml")   # number of records put on the queue
```

The file is a YAML mapping with a `Data` list. Each entry is a `WatchResult.to_dict()` mapping with the keys `timestamp`, `kind`, `watchType` and `payload`.

### Keys and partitions

```python
from sloopkit.store import MemoryStore, get_total_key_count, delete_keys_with_prefix
from sloopkit.partitions import get_partitions_info, get_sorted_partition_ids

store = MemoryStore()
store.set("/watch/001546405200/Pod/ns/name/1", b"")
get_total_key_count(store, "/watch/")                    # 1
infos, total = get_partitions_info(store)
get_sorted_partition_ids(infos)                          # ['001546405200']
delete_keys_with_prefix("/watch/", store, 10, 1)         # (1, 1)
```

## What this package does not do

- It does not connect to a Kubernetes cluster or discover custom resource definitions. You call the `KubeWatcher` handlers yourself, from whatever watches the cluster.
- It has no persistent database. `MemoryStore` holds its data in memory only.
- It has no pipeline that writes watch, activity or event-count tables.
- It provides no web interface, server or command-line program.

## Running the tests

```
pytest
```