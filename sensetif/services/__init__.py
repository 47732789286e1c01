"""
Services Module
===============

Application services coordinating the datapoint domain with storage and
messaging collaborators.
"""

from sensetif.services.datapoint_service import BatchResult, DatapointService
from sensetif.services.protocols import DatapointStore, MessageTransport
from sensetif.services.publisher import IMPORT_OPERATIONS, DatapointPublisher, message_key

__all__ = [
    "IMPORT_OPERATIONS",
    "BatchResult",
    "DatapointPublisher",
    "DatapointService",
    "DatapointStore",
    "MessageTransport",
    "message_key",
]
