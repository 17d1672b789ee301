"""
BERT serving module.

Exposes the ranking pipeline over two transports sharing one service:
- BertService: Protocol-agnostic operations (answer, tag, classify, ...)
- create_app: FastAPI application (HTTP)
- BertServicer: gRPC servicer
- DualTransportServer: Runs both listeners concurrently
"""

from serving.api import create_app
from serving.bert_service import BertService
from serving.config import ServerConfig
from serving.errors import (
    InvalidRequestError,
    ServerStartupError,
    ServingError,
    UnsupportedCapabilityError,
)
from serving.grpc_service import BertServicer, add_bert_servicer_to_server
from serving.server import DualTransportServer, start_default_server

__all__ = [
    'BertService',
    'ServerConfig',
    'create_app',
    'BertServicer',
    'add_bert_servicer_to_server',
    'DualTransportServer',
    'start_default_server',
    'ServingError',
    'InvalidRequestError',
    'UnsupportedCapabilityError',
    'ServerStartupError',
]
