"""Default facets applied when a mapping does not specify them."""

DEFAULT_STRING_LENGTH = 255
DEFAULT_BINARY_LENGTH = 255
DEFAULT_DECIMAL_PRECISION = 16
DEFAULT_DECIMAL_SCALE = 4
DEFAULT_ENUM_LENGTH = 128
GUID_STRING_LENGTH = 36
IP_ADDRESS_STRING_LENGTH = 45
NETWORK_STRING_LENGTH = 50

# Length sentinel for "max" / unbounded text and binary columns.
MAX_LENGTH = -1
