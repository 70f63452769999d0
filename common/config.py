import os

BUFFER_SIZE = 1024

# Roles
MASTER = "MASTER"
SLAVE = "SLAVE"

# Control signals (plain wire format)
FLUSH = 0
TERMINATE = -1

# Values travel as 32-bit signed integers
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

# Networking
BIND_HOST = "0.0.0.0"
DEFAULT_COORDINATOR_HOST = "localhost"

# Broadcast destination:
#   "subnet"  -> derived from the interface owning the local address
#   "limited" -> 255.255.255.255
#   "a.b.c.d" -> fixed address
BROADCAST_SUBNET = "subnet"
BROADCAST_LIMITED = "limited"
BROADCAST_POLICY = BROADCAST_SUBNET
LIMITED_BROADCAST = "255.255.255.255"

# Skip a contributed value equal to the current average right after a flush
# (the coordinator hears its own broadcast on the bound port)
IGNORE_ECHOED_AVERAGE = True

# Wire formats
WIRE_PLAIN = "plain"
WIRE_TAGGED = "tagged"
WIRE_FORMAT = WIRE_PLAIN

# Syslog mirror
SYSLOG_ENABLED = os.getenv("DAS_SYSLOG") == "1"
SYSLOG_HOST = os.getenv("DAS_SYSLOG_HOST", "auto")
SYSLOG_PORT = int(os.getenv("DAS_SYSLOG_PORT", "5514"))
SYSLOG_FACILITY = 16  # local0
SYSLOG_APP = "das-node"
