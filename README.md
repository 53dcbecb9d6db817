# mob

`mob` keeps the shared state of a crew of coding agents on disk, so that
several processes can read and change it.

## What is in the package

- **Registry** (`mob.registry`): `Registry` stores `AgentRecord`s in one JSON
  file, guarded by a thread lock and a file lock (`<file>.lock`). Agents can be
  registered, unregistered, looked up by id (`get`) or name (`get_by_name`),
  listed (`list`, `list_by_type`), pinged, and have their status or task
  changed. Every change stamps `last_ping`; the first move to a terminal status
  (`completed`, `failed`, `timed_out`) also sets `completed_at`. A missing
  agent raises `AgentNotFoundError`. `default_path(mob_dir)` gives
  `<mob_dir>/.mob/agents.json`.
- **Records** (`mob.models`): the dataclasses `Bead`, `BeadEvent`,
  `AgentReport`, `Soldati`, `SoldatiStats` and `Turf`, with the enums
  `BeadStatus`, `BeadType` and `BeadEventType`, and `to_dict`/`from_dict` for
  storage.
- **Beads** (`mob.bead_store`): `BeadStore` keeps beads one per line in
  `open.jsonl`. `create` gives a bead an id such as `bd-1a2b`, a branch
  `mob/<id>` and a `created` history event. `list` filters with `BeadFilter`;
  `update` records a `status_change` event when the status moves;
  `add_event` and `add_comment` append to a bead's history. `list_ready`
  returns open beads that no unclosed bead blocks, lowest priority number
  first. `get_blocked_by`, `get_blocking` and `get_dependency_tree`
  (a `DependencyTree`) answer dependency questions. Unknown ids raise
  `BeadNotFoundError`; malformed lines in the file are skipped.
- **Reports** (`mob.report_store`): `ReportStore` keeps `AgentReport`s in
  `reports.jsonl` with ids such as `rp-1a2b`, filtered with `ReportFilter`,
  and `mark_handled`. Unknown ids raise `ReportNotFoundError`.
- **Soldati** (`mob.soldati`, `mob.names`): `SoldatiManager` stores each named
  worker as `<name>.toml`. `create("")` picks a free name with
  `generate_unique_name`, which walks a fixed list of twenty names and then
  adds suffixes (`vinnie-2`, ...). Names are checked by `validate_name`
  (at most 64 characters, letters, digits, `-` and `_`, starting with a letter
  or digit) and bad ones raise `InvalidNameError`. Turfs can be assigned,
  unassigned and made primary; `list_by_turf` also returns soldati with no
  turfs at all.
- **Turfs** (`mob.turf`): `TurfManager` keeps registered project directories
  in one TOML file, refusing missing paths, duplicate names and paths already
  registered (`TurfError`). `list` returns copies; `get` returns the stored
  turf itself.
- **Sweeps** (`mob.sweep`): `Sweeper(turf_path, bead_store)`.
  `review()` reads up to the last twenty commit subjects from the git HEAD
  reflog looking for words like WIP, TODO or FIXME, and scans code files for
  debug prints, `panic(` and `// nolint`. `bugs()` scans code files for
  TODO, FIXME, HACK, XXX and BUG markers. Each finding becomes an open bead;
  `all()` runs both. Hidden directories, `vendor` and `node_modules` are
  skipped; `is_code_file(ext)` decides which files count.
- **Patrol** (`mob.patrol`): `Patrol` checks every agent a spawner lists and
  marks it `healthy`, `stuck` (no bead update within `stuck_timeout`) or
  `dead` (process not running), calling `on_stuck`/`on_dead` when an agent
  turns so. `start(stop_event)` checks at once and then every `interval`
  until the event is set.
- **Chat** (`mob.session`): `Session(underboss, input, output).run()` reads
  lines, sends each to the underboss's agent and writes the reply, until
  `exit`, `quit`, `q` or end of input. `DEFAULT_SYSTEM_PROMPT` holds the
  underboss character prompt.
- **Interface state** (`mob.tui`): `Model` with its `Tab`s, `ToastQueue`,
  `Chooser` and `clamp_height`. `run()` prints the tab bar of a new model, or
  hands the model to a `start_program` callable you pass in.

## What it does not do

The package starts no agents and talks to no model: `Patrol` needs a spawner
object you supply (with `list()` and `get(agent_id)`), and `Session` needs an
underboss object you supply (with `is_running()` and an `agent` whose
`chat(message)` returns a response with `text`). There is no command-line
program and no full-screen terminal interface; `mob.tui` only holds state.

## Examples

Soldati and turfs:

```python
from mob.soldati import SoldatiManager
from mob.turf import TurfManager

turfs = TurfManager("turfs.toml")
turfs.add("./my-project", "my-project", "main")

crew = SoldatiManager("soldati")
vinnie = crew.create("vinnie")
crew.assign_turf("vinnie", "my-project")
working_here = crew.list_by_turf("my-project")
```

Picking up work:

```python
from mob.bead_store import BeadStore

store = BeadStore("beads")
for bead in store.list_ready("my-project"):
    print(bead.id, bead.title)
```

Sweeping a project for markers and filing beads:

```python
from mob.bead_store import BeadStore
from mob.sweep import Sweeper

sweeper = Sweeper("./my-project", BeadStore("beads"))
result = sweeper.bugs()
print(result.summary)
```

Looking up agents:

```python
from mob.registry import Registry, default_path

registry = Registry(default_path("."))
for record in registry.list_by_type("soldati"):
    print(record.name, record.status)
```

## Tests

The tests use pytest, declared in the `test` extra.