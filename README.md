# inigo

Helpers for integration tests against a cluster of cooperating services:
allocating ports, minting throwaway certificates, computing checksums,
polling HTTP routes through a router, collecting announcements from running
workloads, stopping processes, cleaning up containers, and a small web
application to deploy as a test workload.

## Installation

```
pip install .
pip install ".[test]"   # to run the test suite
```

## Modules

- `inigo.portauthority.PortAllocator(starting_port, ending_port)` hands out
  consecutive ports. `claim_ports(num_ports)` returns the first of
  `num_ports` ports and raises `RuntimeError("insufficient ports available")`
  when the range is used up. An `ending_port` above 65535 raises `ValueError`.
- `inigo.certauthority.CertAuthority(depot_dir, common_name)` creates a CA key
  and certificate and writes them to `<depot_dir>/<common_name>.key` and
  `.crt`. `ca_and_key()` returns `(key_path, cert_path)`.
  `generate_self_signed_cert_and_key(common_name, sans, intermediate_ca)` issues
  a certificate signed by that CA for `127.0.0.1` and the DNS names in `sans`
  (a CA certificate when `intermediate_ca` is true), writes key and certificate
  to new files in `depot_dir`, and returns `(key_path, cert_path)`. A depot
  directory that does not exist raises `FileNotFoundError`.
- `inigo.checksum.hex_value_for_bytes(algorithm, content)` returns the hex
  digest of `content` wrapped in double quotes, for `md5`, `sha1` or
  `sha256`; any other algorithm raises `ValueError`.
- `inigo.guid.generate_guid()` returns a random version 4 UUID string.
- `inigo.timeouts.register_default_timeouts(environ=None)` returns a frozen
  `Timeouts` (eventually timeout 1 minute, consistently duration 5 seconds,
  polling intervals 500 ms and 100 ms), with `DEFAULT_EVENTUALLY_TIMEOUT` and
  `DEFAULT_CONSISTENTLY_DURATION` applied when set in `environ` (default
  `os.environ`). Values are durations such as `90s`, `300ms` or `1h15m30.5s`,
  parsed by `parse_duration(text)` into a `timedelta`; malformed text raises
  `ValueError`.
- `inigo.copying.copy_path(source_path, destination_path)` copies with
  `cp -a`. Empty paths raise `ValueError`; a failed copy raises
  `subprocess.CalledProcessError`.
- `inigo.cleanup_garden.cleanup_garden(garden_client)` destroys every
  container the client lists. The client needs `containers()` (objects with a
  `handle` attribute and an `info()` method) and `destroy(handle)`. Each
  container gets up to three attempts; "unknown handle" and "container
  already being destroyed" errors count as done. Returns the list of errors
  for containers that could not be destroyed.
- `inigo.callback.callback(listen_host, handler)` starts a `CallbackServer` on
  an ephemeral port of `listen_host` and returns `(server, "host:port")`. The
  handler receives the request handler object and returns `None`, a body
  (`str` or `bytes`), or a `(status, body)` tuple; exceptions become 500
  responses and are kept in `server.errors`. `close()` stops the server; it is
  also a context manager.
- `inigo.route_helpers` sends GET requests to a router with a chosen `Host`
  header:
  - `response_body_and_status_code_from_host(router_addr, host, *path_elements)`
    returns `(body, status)`;
  - `response_code_from_host_poller(router_addr, host, *path_elements)` returns
    a function that returns the status code;
  - `hello_world_instance_poller(router_addr, host)` returns a function that
    makes 20 requests and returns the sorted distinct response bodies,
    ignoring failed requests and the router's own 404 and 502 responses (any
    other 404 or 502 raises `AssertionError`).
- `inigo.announcement_server.AnnouncementServer(external_address)` records
  each `announcement` query value fetched from `announce_url(announcement)`
  and returns them in arrival order from `announcements()`. `stop()` shuts it
  down; it is also a context manager.
- `inigo.stop_process.stop_processes(*processes)` sends SIGTERM to each
  process (skipping `None`; on Windows it kills), waits `STOP_TIMEOUT` (20 s),
  sends SIGQUIT to those still running and waits `QUIT_TIMEOUT` (10 s). If any
  process needed SIGQUIT, `StopProcessesError` is raised after all have been
  handled, with the messages in `failures`. Processes are objects such as
  `subprocess.Popen` with `send_signal`, `kill` and `wait(timeout=...)`.

## Example

```python
from inigo.portauthority import PortAllocator
from inigo.checksum import hex_value_for_bytes

ports = PortAllocator(30, 65355)
first = ports.claim_ports(4)    # 30; ports 30-33 are yours
nxt = ports.claim_ports(1)      # 34

print(hex_value_for_bytes("sha256", b"hello"))
```

## Fixture server

`inigo.go_server` is a small web application meant to run as a test
workload. `create_server(address, environ=None)` binds it to `"host:port"`
without serving; the `inigo-go-server` command (`main(argv=None)`) serves it
on every port listed in `PORT` (space separated), and over TLS on
`HTTPS_PORT` using `CF_INSTANCE_CERT` and `CF_INSTANCE_KEY` when that is set.
With `SKIP_LOCALHOST_LISTEN` set it listens on `CF_INSTANCE_INTERNAL_IP`
instead of all interfaces. `--allocate-memory-b N` holds N megabytes of memory
for the life of the process.

```
PORT=8080 INSTANCE_INDEX=0 inigo-go-server
```

Endpoints:

- `/` (and any unknown path): the value of `INSTANCE_INDEX`
- `/env`: the environment, one `KEY=value` per line
- `/write`: writes a line to `$MOUNT_POINT_DIR/test.txt` and returns it
- `/curl`: the exit code of `curl` to an outside host
- `/yo`: `sup dawg`
- `/privileged`: tries to touch `/proc/sysrq-trigger`
- `/cf-instance-cert`, `/cf-instance-key`: contents of those files
- `/cat?file=PATH`: contents of `PATH` (404 when it does not exist)

## What this package does not do

It does not start or configure the cluster's services, build workload
archives, or talk to the scheduler's API: there are no request builders for
tasks or long-running processes and no pollers of their state. The helpers
here work with plain HTTP endpoints, local processes and any client object
that offers the methods described above.