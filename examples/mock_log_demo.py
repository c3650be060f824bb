#!/usr/bin/env python3
"""
Demo of the in-memory log.

Shows backlog replay on first registration, live delivery afterwards, and
failure injection.
"""

from memlog import LogUnavailableError, MockLogManager, ReadMarker
from memlog.utils.config import get_config
from memlog.utils.logging import configure_logging_from_config


class PrintingReader:
    def __init__(self, name):
        self.name = name

    def read(self, message):
        print(f"  [{self.name}] {message.content.decode('utf-8')} from {message.sender_id}")


def main():
    config = get_config()
    configure_logging_from_config(config)

    print("=" * 60)
    print("memlog - Mock Log Demo")
    print("=" * 60)

    manager = MockLogManager.from_config(config, sender_id="demo-node")
    log = manager.open_log("demo-log")

    print("\n[1] Appending before any reader is registered...")
    futures = [log.add(f"message #{i}".encode("utf-8")) for i in range(3)]
    print(f"  pending: {sum(not f.is_delivered() for f in futures)}")

    print("\n[2] Registering first reader (backlog is replayed)...")
    log.register_reader(ReadMarker.from_now(), PrintingReader("first"))
    print(f"  delivered: {sum(f.is_delivered() for f in futures)}")

    print("\n[3] Registering second reader (no replay)...")
    log.register_reader(ReadMarker.from_now(), PrintingReader("second"))
    future = log.add(b"live message")
    print(f"  live message delivered: {future.is_delivered()}")

    manager.close()

    print("\n[4] Failure injection...")
    failing = MockLogManager.from_config(config, sender_id="demo-node", fail_adds=True)
    try:
        failing.open_log("demo-log").add(b"never stored")
    except LogUnavailableError as e:
        print(f"  append rejected: {e}")
    failing.close()


if __name__ == "__main__":
    main()
