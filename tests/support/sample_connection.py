"""A connection that records its lifecycle instead of talking to anything."""

from switchboard import Connection


class SampleConnection(Connection):
    name = "testConnection"

    def connect(self) -> Connection:
        self.connected = True
        return self

    def disconnect(self) -> bool:
        self.connected = False
        return True


def create_connection(config, global_config=None) -> SampleConnection:
    return SampleConnection(config, global_config)
