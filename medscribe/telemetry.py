import json
import hashlib
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.semconv.resource import ResourceAttributes


SERVICE_NAME = "disease-description-server"

logger = logging.getLogger(__name__)


class AuditLogger:
    """Writes one JSON line per tool call to stderr and, optionally, a file.

    stdout is reserved for protocol frames, so nothing here may write there.
    """

    def __init__(self, log_file: Optional[str] = None):
        self.logger = logging.getLogger("medscribe.audit")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file, encoding='utf-8')
            fh.setLevel(logging.INFO)
            fh.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(logging.INFO)
        ch.setFormatter(logging.Formatter('%(message)s'))
        self.logger.addHandler(ch)

    def log_call(self, data: Dict[str, Any]):
        self.logger.info(json.dumps(data, ensure_ascii=False))

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


class Telemetry:
    def __init__(self, otel_endpoint: Optional[str] = None, audit_log: Optional[str] = None):
        self.audit_logger = AuditLogger(audit_log)
        self.tracer_provider = self._setup_tracing(otel_endpoint)
        self.tracer = self.tracer_provider.get_tracer("medscribe")

    def _setup_tracing(self, endpoint: Optional[str]) -> TracerProvider:
        resource = Resource(attributes={
            ResourceAttributes.SERVICE_NAME: SERVICE_NAME
        })

        provider = TracerProvider(resource=resource)

        if endpoint:
            try:
                exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
                provider.add_span_processor(BatchSpanProcessor(exporter))
                logger.info(f"OpenTelemetry exporter configured: {endpoint}")
            except Exception as e:
                logger.warning(f"Failed to setup OTLP exporter: {e}")

        return provider

    def record_call(
        self,
        tool: str,
        arguments: Dict[str, Any],
        ok: bool,
        reason: str,
        latency_ms: float,
        error: Optional[str] = None
    ):
        params_hash = self._hash_params(arguments)

        with self.tracer.start_as_current_span("tool.call") as span:
            span.set_attribute("tool.name", tool)
            span.set_attribute("call.ok", ok)
            span.set_attribute("params.hash", params_hash)
            span.set_attribute("latency.ms", latency_ms)
            if error:
                span.set_attribute("error.type", error)

            trace_id = format(span.get_span_context().trace_id, '032x')

            log_data = {
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "trace.id": trace_id,
                "tool.name": tool,
                "call.ok": ok,
                "reason": reason,
                "params.hash": params_hash,
                "latency.ms": round(latency_ms, 2)
            }

            if error:
                log_data["error.type"] = error

            self.audit_logger.log_call(log_data)

    def _hash_params(self, params: Dict[str, Any]) -> str:
        try:
            data = json.dumps(params, sort_keys=True).encode()
            return hashlib.sha256(data).hexdigest()
        except (TypeError, ValueError):
            return "error"

    def shutdown(self):
        self.tracer_provider.shutdown()
        self.audit_logger.close()
