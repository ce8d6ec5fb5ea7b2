from .json_codec import (
    TraderDataError,
    export_trader_json,
    import_trader_json,
    read_trader_file,
    write_trader_file,
)
from .state_codec import account_from_state, account_to_state, dumps_state, loads_state
from .trader_store import TraderStore

__all__ = [
    "TraderDataError",
    "export_trader_json",
    "import_trader_json",
    "read_trader_file",
    "write_trader_file",
    "account_from_state",
    "account_to_state",
    "dumps_state",
    "loads_state",
    "TraderStore",
]
