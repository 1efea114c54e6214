# mqbroker

Tooling around an MQTT broker: typed configuration objects, JSON-shaped
import and export of that configuration, access-control evaluation,
bridge forwarding rules, a pid file, a local command channel for hot
reloads and a small command-line front end that stops or reloads a
running broker instance.

No third-party libraries are needed; the package runs on Python 3.10 or
later on POSIX systems (the command channel uses Unix sockets).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

The `mqbroker` command talks to a running broker instance through its
pid file (`/tmp/mqbroker.pid`) and its command socket
(`/tmp/mqbroker_cmd.ipc`).

```
mqbroker                          # print usage
mqbroker stop                     # send SIGTERM to the running instance
mqbroker reload --conf <path>     # ask the running instance to reload a config file
```

`stop` takes no further arguments; it fails with exit status 1 when the
pid file names no running process (a stale pid file is removed).
`reload` accepts `--conf <path>` or `--old_conf <path>`; without either,
the running instance reloads the file it was started with. The reply of
the broker (for example `reload succeed` or `conf_file does not exist`)
is printed. Any other sub-command, `--help` included, prints the usage
text.

## Library use

### Configuration — `mqbroker.config`

Dataclasses for every part of the configuration: `BrokerConfig`,
`TlsConfig`, `HttpServerConfig` (with `AuthType`), `WebsocketConfig`,
`SqliteConfig`, `AuthConfig`, `AuthHttpConfig`, `HttpRequestConfig`,
`HttpParam` (with `ParamType`), `LogConfig`, `BridgeConfig`, `BridgeNode`,
`Subscription`, `UserProperty` and the MQTT v5 property sets
`BridgeConnProperties`, `BridgeWillProperties` and `BridgeSubProperties`.

`AuthConfig.add(username, password)` appends a credential pair;
`ParamType.from_name(name)` looks a parameter up case-insensitively and
raises `ValueError` for unknown names.

### Import and export — `mqbroker.conf_update`, `mqbroker.conf_export`

`conf_update` applies JSON-shaped dictionaries to a live configuration
(`set_basic_config`, `set_reload_config`, `set_tls_config`,
`set_http_config`, `set_websocket_config`, `set_sqlite_config`,
`set_auth_config`, `set_auth_http_config`) and copies the
hot-reloadable settings from a freshly loaded configuration
(`reload_basic_config`, `reload_sqlite_config`, `reload_auth_config`).
Keys that are missing or have the wrong JSON type are left alone.

`conf_export` renders the configuration back into dictionaries ready for
`json.dumps` (`get_basic_config`, `get_reload_config`, `get_tls_config`,
`get_auth_config`, `get_auth_http_config`, `get_websocket_config`,
`get_http_config`, `get_sqlite_config`, `get_bridge_config`, ...).

```python
from mqbroker.config import BrokerConfig
from mqbroker.conf_export import get_basic_config
from mqbroker.conf_update import set_basic_config

config = BrokerConfig()
set_basic_config({"parallel": 32, "max_packet_size": 256}, config)
config.max_packet_size            # 262144
get_basic_config(config)["max_packet_size"]   # 256
```

Packet sizes are exchanged in kilobytes and stored in bytes.

### Access control — `mqbroker.acl`

```python
from mqbroker.acl import (
    AclAction, AclConfig, AclContent, AclPermit, AclRule, AclRuleType,
    ConnectionInfo, check_acl, topic_filter,
)

topic_filter("sensors/+/temp", "sensors/room1/temp")   # True

acl = AclConfig(
    rules=[AclRule(AclPermit.DENY, AclAction.PUB, AclRuleType.USERNAME,
                   AclContent("guest"), topics=["admin/#"])],
    no_match=AclPermit.ALLOW,
)
check_acl(acl, AclAction.PUB, ConnectionInfo(username="guest"), "admin/x")  # False
```

The first rule that applies to the action, matches the connection (by
username, client id, an AND/OR of those, or unconditionally) and covers
the topic decides; otherwise `AclConfig.no_match` does.

### Listener URLs and options — `mqbroker.urls`, `mqbroker.options`

`predicate_url(config, url)` routes a URL to the TCP, TLS or websocket
listener by its scheme; `apply_url_defaults(config)` fills in default
URLs for enabled listeners. `broker_parse_opts(argv, config)` applies
command-line options such as `--url`, `-n/--parallel`, `--http`,
`--cacert` or `--log_file` to a `BrokerConfig`; `file_path_parse(argv)`
returns the configuration file kind (`ConfKind`) and path;
`parse_opts(argv, specs)` is the underlying option parser, raising
`OptionError` on invalid, ambiguous or argument-less options. `usage()`
returns the help text.

### Forwarding — `mqbroker.forwarding`

`forward_targets(bridge, topic)` lists the enabled bridge nodes whose
forward filters match a published topic, paired with the matching
filter. `context_count(config)` gives the number of worker contexts a
broker with that configuration starts.

### Pid file — `mqbroker.pidfile`

`store_pid(path)` writes the current process id; `status_check(path)`
returns the pid of a running instance or `None`, removing a stale file.

### Reload commands — `mqbroker.cmd_proc`

`encode_client_cmd(conf_file)` builds the JSON reload request.
`CommandServer(config, loader, path)` serves such requests on a Unix
socket (use it as a context manager or call `start()`/`stop()`);
`loader` is a callable that reads a configuration file and returns a
`BrokerConfig`. `send_command(cmd, path, timeout)` sends a request and
returns the reply text. `handle_command` and `respond` run a request
directly; rejected requests raise `CommandError`.

## What this package does not do

- It does not run an MQTT broker. There is no `start` or `restart`
  command: the command line only stops or reloads an instance that is
  already running and that has written the pid file and serves the
  command socket.
- It does not read configuration files. `CommandServer` needs a
  `loader` supplied by the caller to turn a file into a `BrokerConfig`.
- It does not connect to remote brokers for bridging or encode MQTT
  packets; the bridge settings in `BridgeNode` are only modelled,
  exported and used to decide forwarding targets.