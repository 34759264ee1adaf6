"""Serialization helpers shared by the producer and consumer sides."""
