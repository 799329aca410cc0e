"""Internal constants shared across the library."""

DEFAULT_PORT = 7000
DEFAULT_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 0.25
VAR_LIST_FILENAME = "variables.txt"

#: Text encoding used for names and values on the wire.
WIRE_ENCODING = "latin-1"
#: Text encoding of the tracked-names file.
FILE_ENCODING = "utf-8"

MODE_READ = 0
MODE_WRITE = 1

MAX_MSG_ID = 0xFFFF
MAX_FIELD_LEN = 0xFFFF
