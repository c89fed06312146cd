# ibcrelay

`ibcrelay` relays data between two chains that speak IBC. It creates light clients on each side, drives the connection and channel handshakes, and relays packets and acknowledgements in both directions. It can also run as a service that relays whatever is pending at a fixed interval.

The relayer core works only through the `Chain` and `Prover` interfaces in `ibcrelay.chain`. Concrete chains and provers come from modules (`ibcrelay.config.Module`): a module registers its configuration types with the `Codec` and may add its own subcommands.

## Installation

```
pip install .
```

## Command line

The package installs one command, `yrly`. Its home directory defaults to `~/.yui-relayer`. The global options `--home` and `-d/--debug` go before the subcommand:

```
yrly --home ./relayer config init
```

Before every command, `<home>/config/config.yaml` is read, if it exists, and the chains it lists are built and initialised.

### Configuration

```
yrly config init      # write a default configuration (JSON) to <home>/config/config.yaml
yrly config show      # print the current configuration as JSON
yrly modules show     # print the names of the modules plugged in, sorted
```

`config init` fails if the configuration file already exists. `config show` fails if the home directory or the file is missing.

### Chains and paths

```
yrly chains add-dir ./chains
yrly paths add ibc0 ibc1 ibc01 --file ./path.json
yrly paths add ibc0 ibc1 ibc01
yrly paths list
yrly paths list --json
yrly paths list --yaml
```

`chains add-dir` reads every file in the directory as a JSON object with a `chain` and a `prover` entry. It skips subdirectories and files that cannot be read or parsed, then writes the configuration file again. The configuration file must already exist.

`paths add` requires the source chain to be configured. With `--file` it reads the path from a JSON file. Without it, it prompts on standard input for the client, connection, channel and port identifiers and the version of each end, and checks each answer. The new path uses `ORDERED` channels and the `naive` strategy.

`paths list` prints each path with a status report (chains, clients, connection, channel) by default, or all paths as JSON or YAML.

### Handshakes and relaying

```
yrly tx clients ibc01
yrly tx update-clients ibc01
yrly tx connection ibc01 --timeout 1s
yrly tx channel ibc01 --timeout 1s
yrly tx relay ibc01
yrly tx relay-acknowledgements ibc01
yrly service start ibc01 --relay-interval 3s
```

Durations are written like `300ms`, `10s` or `1m30s`. `tx channel` creates an unordered channel. `tx acks` is an alias of `tx relay-acknowledgements`. `service start` keeps relaying until it is interrupted. It stops with an error once a round has failed five times in a row.

## Library use

- `ibcrelay.path`: `Path`, `Paths`, `PathWithStatus` and `gen_path` describe, validate, store and report on relay paths.
- `ibcrelay.pathend`: `PathEnd` holds one side's identifiers and builds the client, connection, channel, transfer and packet messages of `ibcrelay.ibc`.
- `ibcrelay.chain`: the `Chain`, `Prover` and `LightClient` interfaces. `ProvableChain` pairs a chain with its prover.
- `ibcrelay.headers`: `SyncHeaders` tracks the latest headers and heights of two chains. There are also paired queries of both chains.
- `ibcrelay.relaymsgs`: `RelayMsgs` sends messages to both chains, in batches bounded by `max_msg_length` and `max_tx_size`.
- `ibcrelay.strategy`: `NaiveStrategy` finds unrelayed packets and acknowledgements and relays them. `get_strategy` picks a strategy by name.
- `ibcrelay.service`: `RelayService` and `start_service` repeat relay rounds until a `threading.Event` is set.
- `ibcrelay.client`: `create_clients`, `update_clients` and `send_transfer_msg`.
- `ibcrelay.connection.create_connection` and `ibcrelay.channel.create_channel` drive the handshakes.
- `ibcrelay.events` extracts packets and acknowledgements from transaction events.
- `ibcrelay.chainconfig`: `Codec` and `ChainProverConfig` encode and decode chain and prover configurations.
- `ibcrelay.config`: `Config`, `marshal_json`, `unmarshal_json` and `parse_duration`.
- `ibcrelay.cli.root.execute(modules, argv)` runs the command line with your own modules plugged in.

## What it does not do

- `yrly` as installed plugs in no modules, so it knows no chain or prover types. `chains add-dir` cannot decode any chain configuration, and `modules show` prints nothing. To relay, supply modules that implement `Chain`, `Prover` and their configuration types, and start the command line through `execute`.
- There are no query commands, for example for balances or for client, connection or channel state.
- There is no command for token transfers; `send_transfer_msg` is available only from Python.
- Packet timeouts are not relayed.

## Tests

```
pip install .[test]
pytest
```