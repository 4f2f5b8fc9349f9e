"""Small FastAPI ingress publishing messages through CreateCommand.

Endpoints:
- ``POST /topics/{topic}/messages``: publish one or more messages, optionally
  keyed and/or pinned to a partition. Requires an ``x-api-key`` header.
- ``GET /metrics``: Prometheus-like text export of the in-memory metrics.

The module-level ``app`` is built from ``KAFKA_*`` environment variables;
use ``create_app`` to mount a gateway of your own.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.responses import PlainTextResponse
from kafka.errors import KafkaError
from pydantic import BaseModel, Field

from .commands import CreateCommand
from .dataset import DatasetError
from .gateway import Gateway
from .observability import logger, metrics

# Comma-separated list of allowed keys. If unset, a default dev key
# ("dev-key") is allowed.
_API_KEYS: List[str] = [
    k.strip()
    for k in os.environ.get("KAFKA_GATEWAY_API_KEYS", "dev-key").split(",")
    if k.strip()
]


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    if not x_api_key or x_api_key not in _API_KEYS:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_api_key


class PublishRequest(BaseModel):
    messages: List[Union[str, int, float, List[Any]]] = Field(min_length=1)
    key: Optional[str] = None
    partition: Optional[int] = Field(default=None, ge=0)


class PublishResponse(BaseModel):
    tuples: List[Dict[str, Any]]


def create_app(gateway: Gateway) -> FastAPI:
    app = FastAPI(
        title="rom-kafka ingress",
        description="Publish messages to Kafka topics",
        version="0.1.0",
    )
    app.state.gateway = gateway

    @app.post("/topics/{topic}/messages", response_model=PublishResponse)
    def publish(topic: str, req: PublishRequest, api_key: str = Depends(verify_api_key)):
        command = CreateCommand(gateway.relation(topic))
        if req.partition is not None:
            command = command.where(partition=req.partition)
        if req.key is not None:
            command = command.with_(key=req.key)
        try:
            tuples = command.execute(*req.messages)
        except DatasetError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except KafkaError as e:
            logger.warning("publish_failed", topic=topic, error=str(e))
            raise HTTPException(status_code=502, detail=str(e)) from e
        return {"tuples": tuples}

    @app.get("/metrics", response_class=PlainTextResponse)
    def export_metrics() -> str:
        return metrics.export_prometheus()

    return app


app = create_app(Gateway.from_env("producer"))
