#!/usr/bin/env python3
"""
Clients for the BERT service, one per transport.

Both clients decode replies into the same response records, so results from
the two transports can be compared directly:

    http = BertHttpClient("http://127.0.0.1:1987")
    rpc = BertGrpcClient("127.0.0.1:1976")
    assert http.answer(q, p).answers == rpc.answer(q, p).answers

Errors are raised, never swallowed: requests.HTTPError for HTTP status codes,
grpc.RpcError for gRPC status codes.
"""

import argparse
import json
import time
from typing import Any, Dict, Optional

import grpc
import requests
from google.protobuf import json_format, struct_pb2

from ranking import ClassificationResponse, LabelingResponse, QuestionAnsweringResponse

from .grpc_service import SERVICE_NAME


class BertHttpClient:
    """Client for the HTTP API."""

    def __init__(self, base_url: str = "http://127.0.0.1:1987", timeout: float = 30.0, verify: Any = True):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = verify

    def _post(self, path: str, payload: Dict[str, Any], pretty: bool = False) -> Dict[str, Any]:
        params = {"pretty": "true"} if pretty else None
        response = self.session.post(
            f"{self.base_url}{path}", json=payload, params=params, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def discriminate(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._post("/discriminate", {"text": text}))

    def predict(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._post("/predict", {"text": text}))

    def answer(self, question: str, passage: str, pretty: bool = False) -> QuestionAnsweringResponse:
        data = self._post("/answer", {"question": question, "passage": passage}, pretty=pretty)
        return QuestionAnsweringResponse.from_dict(data)

    def tag(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._post("/tag", {"text": text}))

    def classify(self, text: str) -> ClassificationResponse:
        return ClassificationResponse.from_dict(self._post("/classify", {"text": text}))

    def textual_entailment(self, text: str) -> ClassificationResponse:
        return ClassificationResponse.from_dict(self._post("/te", {"text": text}))

    def health_check(self) -> Dict[str, Any]:
        """Return the health payload (also for 503 responses)."""
        response = self.session.get(f"{self.base_url}/health", timeout=self.timeout)
        return response.json()

    def get_info(self) -> Dict[str, Any]:
        response = self.session.get(f"{self.base_url}/info", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "BertHttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class BertGrpcClient:
    """
    Client for the gRPC service.

    Args:
        target: Server address, host:port
        credentials: Channel credentials; None opens a plaintext channel
        timeout: Per-call deadline in seconds
    """

    def __init__(
        self,
        target: str = "127.0.0.1:1976",
        credentials: Optional[grpc.ChannelCredentials] = None,
        timeout: float = 30.0,
    ):
        self.target = target
        self.timeout = timeout
        if credentials is None:
            self.channel = grpc.insecure_channel(target)
        else:
            self.channel = grpc.secure_channel(target, credentials)

    def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        stub = self.channel.unary_unary(
            f"/{SERVICE_NAME}/{method}",
            request_serializer=struct_pb2.Struct.SerializeToString,
            response_deserializer=struct_pb2.Struct.FromString,
        )
        request = json_format.ParseDict(payload, struct_pb2.Struct())
        reply = stub(request, timeout=self.timeout)
        return json_format.MessageToDict(reply)

    def discriminate(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._call("Discriminate", {"text": text}))

    def predict(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._call("Predict", {"text": text}))

    def answer(self, question: str, passage: str) -> QuestionAnsweringResponse:
        data = self._call("Answer", {"question": question, "passage": passage})
        return QuestionAnsweringResponse.from_dict(data)

    def tag(self, text: str) -> LabelingResponse:
        return LabelingResponse.from_dict(self._call("Tag", {"text": text}))

    def classify(self, text: str) -> ClassificationResponse:
        return ClassificationResponse.from_dict(self._call("Classify", {"text": text}))

    def textual_entailment(self, text: str) -> ClassificationResponse:
        return ClassificationResponse.from_dict(self._call("TextualEntailment", {"text": text}))

    def close(self) -> None:
        self.channel.close()

    def __enter__(self) -> "BertGrpcClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def main():
    """Ask the same question over both transports and print the answers."""
    parser = argparse.ArgumentParser(description="Query a running BERT service")
    parser.add_argument("--url", default="http://127.0.0.1:1987", help="HTTP base URL")
    parser.add_argument("--grpc-target", default="127.0.0.1:1976", help="gRPC host:port")
    parser.add_argument("--question", required=True)
    parser.add_argument("--passage", required=True)
    args = parser.parse_args()

    with BertHttpClient(args.url) as http, BertGrpcClient(args.grpc_target) as rpc:
        print(f"Health: {json.dumps(http.health_check())}")

        for name, client in (("HTTP", http), ("gRPC", rpc)):
            start_time = time.time()
            response = client.answer(args.question, args.passage)
            latency = (time.time() - start_time) * 1000
            print(f"\n[{name}] service {response.took}ms, end-to-end {latency:.1f}ms")
            for rank, answer in enumerate(response.answers, 1):
                print(f"  {rank}. {answer.text!r} [{answer.start}:{answer.end}] "
                      f"confidence={answer.confidence:.3f}")


if __name__ == "__main__":
    main()
