# plantservant

Building blocks for a small plant-care community: users chat in rooms,
share posts with pictures and watch the temperature and humidity around
their plant. Client and server exchange JSON messages over TCP, each
framed by a 4-byte big-endian length prefix.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## What is inside

- `plantservant.errors`: `ErrorCategory`, `ErrorCode` and `DomainError`
  (a `ValueError`), raised when an entity rejects a value such as an empty
  title or a negative user id.
- `plantservant.events`: `Signal`, a minimal observer with `connect`,
  `disconnect` and `emit`. Handlers are called in the order they were
  connected.
- `plantservant.entities`: `User`, `Plant`, `Post`, `ChatRoom`, `ChatUnit`
  and `PermissionLevel`. Each entity has `to_json()` and the class method
  `from_json(data)`.
- `plantservant.framing`: `encode_packet`, `encode_message` (compact JSON
  with sorted keys) and `PacketDecoder` for the length-prefixed wire format.
- `plantservant.client`: `ClientSocket`, which builds command messages
  (login, registration, products, orders, order items, chat rooms, chat)
  and routes the server's responses and events to its signals.
- `plantservant.services`: `UserService`, `ChatService`, `PostService` and
  `PlantService`, thin layers over a `ClientSocket`. `PostService` delivers
  single posts as `Post` objects, and `PlantService` delivers plants as
  `Plant` objects.
- `plantservant.server_config`: `ServerConfig`, the shared set of data and
  log file paths.
- `plantservant.sensor_queue`: `SensorDataQueue`, a thread-safe FIFO of
  `SensorData` readings shared between producers and consumers.
- `plantservant.socket_server`: `SocketServer` and `ClientConnection`,
  which accept clients, track the user logged in on each client, and send
  or broadcast JSON.
- `plantservant.sensor`: reads the HTS221 sensor over I2C and uploads the
  readings over HTTP.

## Framing

```python
from plantservant.framing import PacketDecoder, encode_message

packet = encode_message({"header": {"messageType": "command"}, "body": {}})
decoder = PacketDecoder()
for payload in decoder.feed(packet):
    print(payload)
```

Data can be fed in pieces of any size. A payload is returned only once all
of its bytes have arrived, and `decoder.pending` counts the bytes still
buffered.

## Client

```python
from plantservant.client import ClientSocket
from plantservant.services import UserService

with ClientSocket() as socket:
    socket.connect_to_server("localhost", 54321)

    users = UserService(socket)
    users.login_success.connect(lambda data: print("logged in as", data.get("name")))
    password = "password"
    users.login("alice", password)

    socket.poll(1.0)  # read and dispatch whatever the server sent
```

Connecting gives up after five seconds. Requests sent while not connected
are refused: the call returns `False` and the failure is reported through
`error_occurred`. `receive(data)` processes bytes you obtained some other
way, which makes the response handling easy to drive without a network.

## Server connections

```python
from plantservant.socket_server import SocketServer

with SocketServer() as server:
    server.json_data_received.connect(lambda client_id, message: print(client_id, message))
    server.start_server("127.0.0.1", 5105)
    while server.is_listening():
        server.poll(0.5)
```

`start_server()` listens on `0.0.0.0:5105` by default, and a bare integer
is taken as the port. `set_user_logged_in(client_id, user_id)` binds a user
to a client, taking the user away from any other client, so that
`send_json_to_user` and `broadcast_to_users` can reach them.
`server_info()` gives a one-line summary.

## Entities

```python
from plantservant.entities import Post
from plantservant.errors import DomainError

post = Post.from_json({"postId": 3, "title": "Basil", "content": "New leaves", "userId": 7})
try:
    post.set_title("")
except DomainError:
    print("a post needs a title")
```

## Sensor queue

```python
from plantservant.sensor_queue import SensorDataQueue

queue = SensorDataQueue.get_instance()
queue.enqueue(1, 23.5, 40)
reading = queue.try_dequeue()  # None when the queue is empty
```

## Sensor uploader

On a Raspberry Pi with a Sense HAT, start the uploader with:

```
plantservant-sensor
```

Every ten seconds it reads temperature and humidity from the HTS221 over
I2C and posts them as JSON, for example
`{"temperature": 23.51, "humidity": 41}`, to
`http://192.168.2.212:54321/rasp/sensor`. The options `--device`,
`--address`, `--url`, `--interval` and `--count` change the I2C device,
the sensor address, the target URL, the pause between readings and how
many readings to take before stopping. A failed upload is reported and the
loop goes on; a failed sensor read ends the program with status 1.

`convert(registers)` and `format_payload(reading)` can be used on their
own, without the hardware.

## What this package does not do

- `SocketServer` only moves JSON messages between connections. It does not
  act on commands: there is no login checking, no session handling and no
  answers to the user, post, plant or chat requests that `ClientSocket`
  sends. Product and order commands likewise have nothing here to serve
  them.
- Nothing is stored. `ServerConfig` only names the data and log file
  paths; no module reads or writes those files.
- There is no HTTP endpoint that receives the sensor uploads, and nothing
  takes readings off `SensorDataQueue` to store them.
- There are no windows or screens; the client side is the socket, the
  services and their signals.