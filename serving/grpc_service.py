"""
gRPC transport for the BERT service.

Exposes the same operations as the HTTP API as unary methods of the
"bert.BERT" service:

    Discriminate, Predict, Answer, Tag, Classify, TextualEntailment

Request and reply messages are google.protobuf.Struct. Requests carry the
HTTP body fields ({"text"} or {"question", "passage"}); replies are parsed
from record.dump(), so a reply decodes to the same record the HTTP endpoint
returns for the same input.

Status codes:
    INVALID_ARGUMENT  missing or malformed request fields
    UNIMPLEMENTED     capability not supported by the loaded model
    INTERNAL          model or serialization failure
"""

import asyncio
import logging
import time
from typing import Dict

import grpc
from google.protobuf import json_format, struct_pb2

from ranking import Capability, SerializationError

from .bert_service import BertService
from .errors import InvalidRequestError, UnsupportedCapabilityError

logger = logging.getLogger(__name__)

SERVICE_NAME = "bert.BERT"

METHOD_CAPABILITIES: Dict[str, Capability] = {
    "Discriminate": Capability.DISCRIMINATE,
    "Predict": Capability.PREDICT,
    "Answer": Capability.ANSWER,
    "Tag": Capability.TAG,
    "Classify": Capability.CLASSIFY,
    "TextualEntailment": Capability.TEXTUAL_ENTAILMENT,
}


class BertServicer:
    """
    Async servicer delegating every method to a shared BertService.

    Inference runs in a worker thread (asyncio.to_thread) so concurrent calls
    never block the server's event loop.
    """

    def __init__(self, service: BertService):
        self.service = service

    async def Discriminate(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("Discriminate", request, context)

    async def Predict(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("Predict", request, context)

    async def Answer(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("Answer", request, context)

    async def Tag(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("Tag", request, context)

    async def Classify(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("Classify", request, context)

    async def TextualEntailment(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        return await self._invoke("TextualEntailment", request, context)

    async def _invoke(
        self,
        method: str,
        request: struct_pb2.Struct,
        context: grpc.aio.ServicerContext,
    ) -> struct_pb2.Struct:
        capability = METHOD_CAPABILITIES[method]
        start_time = time.time()
        logger.info(f"→ gRPC {method}")

        payload = json_format.MessageToDict(request)
        try:
            record = await asyncio.to_thread(self.service.dispatch, capability, payload)
            reply = json_format.Parse(record.dump(), struct_pb2.Struct())
        except InvalidRequestError as e:
            logger.warning(f"Invalid request on {method}: {e}")
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(e))
        except UnsupportedCapabilityError as e:
            logger.warning(f"Unsupported capability on {method}: {e}")
            await context.abort(grpc.StatusCode.UNIMPLEMENTED, str(e))
        except SerializationError as e:
            logger.error(f"Failed to encode response for {method}: {e}")
            await context.abort(grpc.StatusCode.INTERNAL, str(e))
        except Exception as e:
            logger.error(f"Inference failed on {method}: {e}", exc_info=True)
            await context.abort(grpc.StatusCode.INTERNAL, f"Inference failed: {e}")

        duration = (time.time() - start_time) * 1000
        logger.info(f"← gRPC {method} duration={duration:.1f}ms")
        return reply


def add_bert_servicer_to_server(servicer: BertServicer, server: grpc.aio.Server) -> None:
    """Register every method of the servicer under SERVICE_NAME."""
    handlers = {
        method: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, method),
            request_deserializer=struct_pb2.Struct.FromString,
            response_serializer=struct_pb2.Struct.SerializeToString,
        )
        for method in METHOD_CAPABILITIES
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )
