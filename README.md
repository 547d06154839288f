# lidarnav

Building blocks for a small 2D lidar robot, in plain Python with numpy.

## What is inside

- `lidarnav.results`: lidar result codes (`ResultCode`, with `is_ok` and
  `is_fail` testing the fail bit) and the exceptions that `raise_for_result`
  turns failing codes into: `LidarError` and its subclasses `OperationFailed`,
  `OperationTimeout`, `InvalidData`, `OperationNotSupported` and
  `InsufficientMemory`.
- `lidarnav.mapping`: an occupancy image held in an `(H, W, 3)` `uint8` array.
  `new_grid(size)` makes an empty square map (1000 cells a side by default).
  `update_map(grid, start_x, start_y, thetas, dists)` traces one scan into it in
  place: cells along each beam are marked free, the end cell occupied and hit,
  and the scan origin is marked. Channel 0 holds occupancy, channel 1 the hits of
  the latest scan, channel 2 the origin. `clear_hits(grid)` resets channel 1.
  Positions are `(x, y)` with `x` the row and `y` the column.
- `lidarnav.dwa`: a sector-based heading chooser. `sector_clearances` bins a
  scan into 36 sectors and keeps the nearest range in each, capped at 350.
  `target_sector` gives the sector, in tens of degrees, that the target lies in.
  `plan` grades every sector by how far it turns from the target and how close
  the obstacles are, and returns a `DwaResult` (`sector`, `heading`,
  `target_sector`, `clearances`, `grades`). Given a canvas array, it also draws
  the clearances, the chosen heading, the target and the position on it.
- `lidarnav.address`: `SocketAddress`, an IPv4 or IPv6 address with a port
  (`AddressType` names the kind), and `lookup_host`, which resolves a host and
  service to a list of addresses, or an empty list if resolution fails.
- `lidarnav.sockets`: `StreamSocket` and `DGramSocket` (created with
  `SocketFamily`), with millisecond timeouts set per `Direction`, and waits that
  return `False` on timeout. Socket errors are raised as `LidarError` subclasses.
  Both can be used as context managers.
- `lidarnav.tcp_channel`: `TCPChannelDevice`, a byte channel to a lidar over TCP.
- `lidarnav.serialport`: `RawSerial`, a POSIX serial port opened raw,
  non-blocking and 8N1, with DTR control and a `wait_for_data` that
  `cancel_operation` can interrupt; `term_baud_bitmap` maps a baud rate to its
  terminal speed constant.
- `lidarnav.serial_channel`: `SerialChannelDevice`, a byte channel to a lidar
  over a `RawSerial` port.

## Installing

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Example

```python
from lidarnav.dwa import plan
from lidarnav.mapping import clear_hits, new_grid, update_map

thetas = [0.0, 90.0, 180.0, 270.0]
dists = [100.0, 50.0, 300.0, 20.0]

grid = new_grid()
update_map(grid, 500.0, 500.0, thetas, dists)
clear_hits(grid)

result = plan((600.0, 500.0), dists, thetas, 500.0, 500.0)
print(result.sector, result.heading)
```

Failing lidar operations raise subclasses of `LidarError`; they do not return
status codes.

## What it does not do

- It does not speak the lidar's command protocol: the channels move raw bytes
  only, and nothing here starts a scan or decodes measurements.
- It has no command-line program.
- It does not align scans to each other.
- It opens no windows: maps and plans are drawn into numpy arrays, which the
  caller displays or saves as it likes.
- `lidarnav.serialport` needs a POSIX system (`termios` and `fcntl`).