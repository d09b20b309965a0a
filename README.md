# beemflow

Tool adapters for running workflow steps. An adapter takes a dictionary of
inputs and returns a dictionary of outputs. Every adapter subclasses
`beemflow.base.Adapter` and provides `id()`, `execute(inputs)` and
`manifest()`.

## What is included

- `CoreAdapter` (`beemflow.core_adapter`) has the id `core`. It runs
  built-in tools, and the `__use` input selects which one.
  - `core.echo` returns its inputs without the `__use` key. If the
    `BEEMFLOW_DEBUG` environment variable is set and `text` is a string,
    `text` is logged at INFO level.
  - `core.convert_openapi` turns an OpenAPI document into tool manifests.
    - The document goes in `openapi`, either as a JSON string or as a
      dictionary.
    - `api_name` is optional and defaults to `api`.
    - `base_url` is optional. Without it, the first `servers` URL in the
      document is used, and failing that `https://api.example.com`.
    - Only `get`, `post`, `put`, `patch` and `delete` operations are
      converted.
    - The result has the keys `manifests`, `count`, `api_name` and
      `base_url`.
  - Its helpers are public functions: `generate_tool_name`,
    `extract_description`, `extract_parameters`, `determine_content_type`,
    `is_valid_http_method` and `convert_openapi_to_manifests`.
- `HTTPAdapter` (`beemflow.http_adapter`) makes HTTP calls.
  - If its `ToolManifest` has an endpoint, it POSTs the inputs to that
    endpoint as JSON.
    - Missing inputs are filled from the `default` values in the
      manifest's `parameters.properties`.
    - The manifest's headers are sent, and then any string values from a
      `headers` input.
  - Otherwise it takes `url`, `method` (default `GET`), `headers` and
    `body` from the inputs. The body is sent as JSON, but only for methods
    other than GET.
  - A JSON object response is returned as it is. Any other response is
    wrapped as `{"body": ...}`.
  - `expand_env_value` replaces `$env:NAME` with the variable's value and
    leaves it as written if the variable is unset or empty. It is applied
    to manifest headers and to string defaults.
- `AdapterRegistry` (`beemflow.registry`) keeps adapters by id.
  - `register`, `get` (returns `None` when the id is unknown) and `all`.
  - `load_and_register_tool(name, path)` reads a manifest JSON file and
    registers an `HTTPAdapter` under `name`. If `name` is already
    registered, it does nothing.
  - `close_all()` calls `close()` on every adapter that has one. After all
    of them have been tried, it raises the first error.
  - `append_to_local_registry(entry, path)` writes a `RegistryEntry` into
    a JSON array file and replaces any earlier entry with the same name.
    A missing or corrupted file is started afresh.
- `ToolManifest` and `RegistryEntry` (`beemflow.base`) are dataclasses
  with `from_dict` and `to_dict`.

## Installing

```
pip install .
```

## Example

```python
from beemflow.core_adapter import CoreAdapter
from beemflow.registry import AdapterRegistry

registry = AdapterRegistry()
registry.register(CoreAdapter())

core = registry.get("core")
print(core.execute({"__use": "core.echo", "text": "hello"}))
# {'text': 'hello'}

spec = {
    "servers": [{"url": "https://api.example.com"}],
    "paths": {"/users/{id}": {"get": {"summary": "Get user"}}},
}
result = core.execute({"__use": "core.convert_openapi", "openapi": spec, "api_name": "demo"})
print(result["manifests"][0]["name"])
# demo.users_by_id_get
```

## Errors

Adapter failures raise `beemflow.base.AdapterError`. This covers unknown
tools, missing inputs, invalid JSON, unreadable manifests, and HTTP
responses outside the 2xx range. When `append_to_local_registry` cannot
write its file, the `OSError` is raised as it is.

## What it does not do

This is a library of adapters only. It has no command-line tool and no
workflow engine or server that runs steps. It does not talk to MCP tool
servers and does not fetch remote tool registries. The only storage is the
JSON registry file that `append_to_local_registry` writes.

## Running the tests

```
pip install .[test]
pytest
```