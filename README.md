# ebuskit

Building blocks for talking to an eBUS heating bus from Python:

- **Data types** (`ebuskit.datatypes`): encoders and decoders for the common
  eBUS value formats `BCD`, `Bitfield`, `Data1b`, `Data2b`, `Data2c`, `Exp` and
  `Word`. Each one recognises the format's replacement value (the bus's "no
  value") and reports it as an invalid `Value`.
- **Structured payloads** (`ebuskit.structured`): `decode_fields` reads a
  sequence of named fields from one payload, and `total_size` gives the number
  of bytes they take.
- **Enhanced adapter protocol** (`ebuskit.enh`, `ebuskit.adapter_info`):
  `encode_enh`, `decode_enh` and the incremental `ENHParser` handle the two-byte
  framing used by enhanced eBUS adapters. `parse_adapter_version` and
  `parse_adapter_reset_info` decode the adapter's INFO responses.
- **Transports** (`ebuskit.enh_transport`, `ebuskit.plain`, `ebuskit.loopback`):
  `ENHTransport` (and `ens_transport`) runs over a connected socket to an
  enhanced adapter. `TCPPlainTransport` and `UDPPlainTransport` pass raw bytes
  through unchanged. `Loopback` is an in-memory transport for tests and
  simulations. All of them implement the `RawTransport` interface from
  `ebuskit.transport` (`read_byte`, `write`, `close`) and can be used as
  context managers.

The package has no dependencies beyond the standard library.

## Installation

```
pip install ebuskit
```

## Data types

```python
from ebuskit.datatypes import Bitfield, Data2c, Word

temperature = Data2c().decode(bytes([0x10, 0x00]))
print(temperature.valid, temperature.value)   # True 1.0

print(Word().encode(0x1234))                  # b'4\x12'
print(Word().decode(b"\xff\xff").valid)       # False: replacement value

flags = Bitfield(1).decode(b"\x12")
print(flags.value[1], flags.value[4])         # True True (least significant bit first)
```

`decode` reads the leading bytes of the payload and returns a `Value` with
`value` and `valid`; an invalid value has `value` set to `None`. `encode`
raises `InvalidPayloadError` for values that are out of range, of the wrong
type, equal to the replacement value, or not exactly representable (for
example `Data2b().encode(0.1)`). `Exp` encodes only Python floats; the integer
types accept only ints.

## Structured payloads

```python
from ebuskit.datatypes import Data1b, Word
from ebuskit.structured import Field, decode_fields, total_size

fields = [Field("first", Data1b()), Field("second", Word())]
print(total_size(fields))                      # 3
values = decode_fields(bytes([0x01, 0x34, 0x12]), fields)
print(values["second"].value)                  # 4660
```

A payload too short for the fields, or a field that fails to decode, raises
`InvalidPayloadError` naming the field.

## Enhanced protocol framing

```python
from ebuskit.enh import ENHCommand, ENHParser, decode_enh, encode_enh

print(encode_enh(ENHCommand.REQ_START, 0xA5))  # b'\xca\xa5'
print(decode_enh(0xCA, 0xA5).data)             # 165

parser = ENHParser()
for message in parser.parse(b"\x10" + encode_enh(ENHCommand.REQ_SEND, 0x55)):
    print(message.command, message.data)
```

Single bytes below 0x80 are reported as `RES_RECEIVED` frames carrying that
byte. A frame split across calls is completed on the next `feed` or `parse`;
`reset` discards a half-received frame.

## Adapter INFO responses

```python
from ebuskit.adapter_info import AdapterInfoID, parse_adapter_version, parse_adapter_reset_info

version = parse_adapter_version(bytes([0x23, 0x01, 0xAB, 0xCD, 0x19]))
print(version.checksum == 0xABCD, version.is_wifi, version.version_response_len())  # True True 5
print(version.supports_info_id(AdapterInfoID.WIFI_RSSI))                            # True
print(str(AdapterInfoID.WIFI_RSSI))                                                 # wifi_rssi

print(parse_adapter_reset_info(bytes([1, 5])).cause)                                # power_on
```

Version responses must be 2, 5 or 8 bytes long; reset info at least 2.

## Enhanced adapters

```python
import socket
from ebuskit.enh_transport import ENHTransport
from ebuskit.adapter_info import AdapterInfoID, parse_adapter_version

conn = socket.create_connection(("localhost", 9999))
adapter = ENHTransport(conn, read_timeout=0.2, write_timeout=0.2)
adapter.initialize(0x00)

version = parse_adapter_version(adapter.request_info(AdapterInfoID.VERSION))
print(version.version, version.supports_info)

adapter.start_arbitration(0x10)     # raises BusCollisionError if lost
adapter.write(bytes([0xFE, 0xB5]))
print(adapter.read_byte())
adapter.close()
```

- Timeouts are in seconds; zero or less means wait without limit.
- `initialize` sends INIT and returns on RESETTED or when the wait
  (the read timeout, or 2 seconds) runs out.
- `write` sends every byte as a SEND frame in one batch.
- `read_byte` returns received bus bytes and silently skips adapter resets;
  `read_event` returns them as `StreamEvent`s, with a `RESET` event for each
  adapter reset.
- `request_info` raises `EbusTimeoutError` when no complete answer arrives
  within the read timeout, and `TransportClosedError` when the adapter resets
  mid-exchange. Bus bytes received during the exchange stay queued for
  `read_byte`.
- `start_arbitration` drops bus bytes seen while it waits.

`ens_transport(conn, read_timeout, write_timeout)` returns an `ENHTransport`
configured the same way; `arbitration_sends_source()` is `True` for both.

## Plain and in-memory transports

`TCPPlainTransport(conn, read_timeout, write_timeout)` reads and writes the
bytes of a connected TCP socket as they are. `UDPPlainTransport` does the same
over a connected UDP socket, treating each datagram as a chunk of the stream
and sending each `write` as one datagram. After `close`, both raise
`TransportClosedError` on reads and writes.

```python
from ebuskit.loopback import Loopback

with Loopback() as lb:
    lb.write(b"\x01\x02")
    print(lb.read_byte(), lb.read_byte())   # 1 2
```

`Loopback.read_byte` blocks until something is written or the loopback is
closed; bytes written before closing can still be read.

When a transport write fails part way, the raised error has a `written`
attribute with the number of payload bytes that were sent.

## Errors

All errors derive from `EbusError` in `ebuskit.base`:

| Exception              | Also a             | Meaning                                          |
|------------------------|--------------------|--------------------------------------------------|
| `InvalidPayloadError`  | `ValueError`       | Malformed data or a value that cannot be encoded |
| `EbusTimeoutError`     | `TimeoutError`     | No data arrived in time                          |
| `TransportClosedError` | `ConnectionError`  | The connection was closed or reset               |
| `BusCollisionError`    |                    | Bus arbitration was lost                         |

## What it does not do

This package stops at the byte and adapter-frame level. It does not assemble
or check eBUS telegrams (addresses, CRC, acknowledgements, SYN handling), does
not run a bus master or slave state machine, and has no connection to a bus
daemon's command port, no command-line tool and no storage of any kind.

## Running the tests

```
pip install -e ".[test]"
pytest
```