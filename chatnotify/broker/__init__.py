"""RabbitMQ plumbing: topology, connection handshake, publisher and consumer.

All broker I/O goes through aio-pika.  Publisher and consumer each own one
connection and one channel, and track their lifecycle through the same
``ConnectionStateMachine``.
"""
