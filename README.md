# hyperconsole

`hyperconsole` reads Taskfiles, the YAML files that describe named tasks,
their commands, dependencies, variables and includes, and turns them into
plain Python objects. It follows `includes:` from one Taskfile to the next,
builds a graph of the files it found, and merges that graph into a single
Taskfile whose included tasks carry namespaced names.

It also holds the key-binding tables used by a console's list and viewport
screens.

## What is in the package

- `hyperconsole.ast.taskfile`: `parse_taskfile` turns YAML text (bytes or
  str) into a `Taskfile` holding `Tasks`, `Vars`, `Includes`, an `Output`
  style, `dotenv` paths and an `interval`. An empty document gives an empty
  `Taskfile`. `parse_version` reads versions such as `3` or `3.1` into a
  `Version`.
- `hyperconsole.ast.task`, `commands`, `loop`, `matrix`, `include`,
  `simple`, `platforms`, `vars`, `decode`: the parts of a Taskfile
  (`Task`, `Cmd`, `Dep`, `For`, `Matrix`, `Include`, `Precondition`,
  `Requires`, `Glob`, `Defer`, `Platform`, `Var` and the ordered `Vars`
  collection). Each has a `decode_*` function that accepts the short and long
  forms a Taskfile allows for it. Malformed input raises
  `TaskfileDecodeError`, which records the line and column of the offending
  node. An unknown OS or architecture in `platforms` is reported as an
  `InvalidPlatformError`.
- `hyperconsole.ast.tasks`: `Tasks`, an ordered map of task names, and
  `Tasks.merge`, which copies the tasks of an included Taskfile into it.
- `hyperconsole.ast.graph`: `TaskfileGraph` keeps one `TaskfileVertex` per
  Taskfile location and one edge per include. It refuses duplicate vertices
  (`VertexExistsError`) and edges that would make a cycle
  (`EdgeCreatesCycleError`). `TaskfileGraph.merge` folds every included
  Taskfile into its parents and returns the root `Taskfile`;
  `TaskfileGraph.visualize` writes the graph in DOT format.
- `hyperconsole.taskfile.locate`: `exists` finds a Taskfile at a path,
  trying the default names (`Taskfile.yml`, `taskfile.yml`,
  `Taskfile.yaml`, `taskfile.yaml` and the `.dist` variants) in a
  directory. `exists_walk` also searches the parent directories, stopping at
  the root or where the directory owner changes. `remote_exists` does the
  same for a URL.
- `hyperconsole.taskfile.nodes`: `new_root_node` and `new_node` give a
  `FileNode`, a `StdinNode` (for the entrypoint `-`) or an `HTTPNode`.
- `hyperconsole.taskfile.reader`: `Reader` walks the includes and builds
  the graph.
- `hyperconsole.taskfile.cache`: `Cache` stores downloaded remote Taskfiles
  and their SHA-256 checksums under `<temp dir>/remote`.
- `hyperconsole.taskfile.snippet`: `Snippet` renders a few highlighted
  lines of a Taskfile around a line and column, for error reports.
- `hyperconsole.keys`: `KeyMap`, `DefaultKey`, `CustomKey` and
  `KeyBinding`, with `new_list_key_map` and `new_viewport_key_map` for the
  standard screens.

## Parsing a Taskfile

```python
from hyperconsole.ast.taskfile import parse_taskfile

taskfile = parse_taskfile(b"""
version: '3'
env:
  FOO: bar
tasks:
  default:
    cmds:
      - echo $FOO
      - task: build
  build: go build ./...
""")

default = taskfile.tasks.get("default")
print([cmd.cmd or cmd.task for cmd in default.cmds])  # ['echo $FOO', 'build']
```

Merging two Taskfiles whose versions differ raises `TaskfileMergeError`, and
so does merging an included Taskfile that declares its own `dotenv` files.

Variables are decoded as plain values, or as `{sh: ...}` and `{ref: ...}`
mappings; any other mapping is an error. Setting the environment variable
`TASK_X_MAP_VARIABLES` to `1` or `2` switches to the alternative decodings
that allow map values.

## Reading a Taskfile and its includes

```python
from hyperconsole.taskfile.nodes import new_root_node
from hyperconsole.taskfile.reader import Reader

node = new_root_node("", "path/to/project", False, 10.0)
graph = Reader(node).read()
merged = graph.merge()
```

Tasks that come from an included Taskfile are renamed `namespace:task`,
unless the include is flattened; two tasks that end up with the same name
raise `TaskNameFlattenConflictError`. An include that refers back to one of
its ancestors raises `TaskfileCycleError`. An include that cannot be
opened is skipped when it is marked `optional`. A Taskfile with no `version`
raises `TaskfileVersionCheckError`; YAML that cannot be parsed raises
`TaskfileInvalidError` or a `TaskfileDecodeError` carrying a `Snippet` of
the file.

Include paths may refer to variables as `{{.NAME}}`; they are filled from the
environment and the including Taskfile's `vars`.

### Remote Taskfiles

HTTP and HTTPS includes are only followed when the environment variable
`TASK_X_REMOTE_TASKFILES` is `1`. Plain `http` is refused with
`TaskfileNotSecureError` unless the reader or node is created with
`insecure=True`. A remote file seen for the first time, or one whose
checksum changed since it was cached, is only used once the reader's
`prompt_func` accepts it (it rejects by raising or returning `False`);
otherwise `TaskfileNotTrustedError` is raised. Without a `prompt_func`
every prompt is accepted.

With `offline=True` only cached copies are used, and a missing one raises
`TaskfileCacheNotFoundError`. When a download times out, a cached copy is
used instead unless `download=True` was given; otherwise
`TaskfileNetworkTimeoutError` is raised.

## Key bindings

```python
from hyperconsole.keys import CustomKey, DefaultKey, new_list_key_map

key_map = new_list_key_map().with_key(CustomKey("Reload", "ctrl+r", "Reload the data"), True)
key_map.matches("enter", DefaultKey.ENTER)   # True
key_map.matches("ctrl+r", DefaultKey.ENTER)  # False
```

`KeyMap.short_help` lists the bindings marked for the short help line and
`KeyMap.full_help` returns them as a single column.

## What the package does not do

- It does not run tasks. There is no executor: commands, dependencies,
  preconditions, `for` loops and dynamic `sh` variables are read and kept as
  data, never evaluated, and nothing is watched for changes.
- Templates are not rendered beyond the simple `{{.NAME}}` substitution in
  include paths.
- Taskfiles in Git repositories are not fetched; `new_node` raises an
  error for them.
- There is no command-line program and no interactive screen; `keys` only
  provides the binding tables such screens would use.