"""Collective communication transports for multi-walker runs."""

from .communicator import (  # noqa: F401
    Communicator,
    MPICommunicator,
    SerialCommunicator,
    ThreadCommunicator,
    ThreadCommunicatorGroup,
)
