"""


lircd client connections

- Conduit: abstraction of a bi-directional channel. Combines 2 streams for reading and writing.
  LineConduit reads and writes the newline terminated text lines lircd speaks.
- Connector: dials an endpoint, a Unix socket path or a TCP host and port, and provides the conduit.
- ProtocolReader: classifies each line from lircd as a button press broadcast or as part of a
  reply block, and assembles the replies.
- CommandGate / DispatchLoop: admit one command at a time and pair each reply with its command.
- Connection: runs the read and dispatch threads over a connector, delivers button presses to its
  events output and answers send_command() calls.
- EventRouter: calls handlers registered by remote and button name for each button press.


Threading

Each started connection runs two daemon threads. The read thread blocks on the socket and is
the only reader; the dispatch thread is the only writer. They share a CancelToken: the first
thread to fail cancels it with the failure as cause, which closes the socket and stops the
other thread. Connection.start() runs on the caller's thread and blocks until both have stopped.

Callers of send_command() block on their own thread, first for the gate and then for the reply.
Every blocking call takes an optional CancelToken so it can be abandoned.

"""
