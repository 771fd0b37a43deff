"""HTTP sidecar server for billing-aid.

A lightweight stdlib HTTP server on localhost.  The billing front end
(or whatever calls the LLM) talks to it instead of importing the package.

Endpoints:
    GET  /health                       Health check
    GET  /flagged-words                Current flagged-word table
    POST /check-words                  {"text"} → flagged words
    POST /replace-word                 {"text", "flaggedWord", "replacement"} → {"updatedText"}
    GET  /templates                    Template group summaries
    GET  /templates/<id>               One template group
    POST /templates/suggest            {"description"} → ranked suggestions
    POST /anonymize                    {"text", "options"} → redacted text + audit trail
    POST /detect-identifiable-info     {"text"} → detected categories + suggestions

All endpoints expect/return JSON.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import unquote, urlsplit

from .config import create_pipeline
from .pipeline import BillingPipeline

logger = logging.getLogger(__name__)

DEFAULT_HOST = os.environ.get("BILLING_AID_HOST", "127.0.0.1")
DEFAULT_PORT = int(os.environ.get("BILLING_AID_PORT", "18792"))


class BadRequest(Exception):
    pass


class BillingHandler(BaseHTTPRequestHandler):
    """HTTP request handler; ``pipeline`` is bound by ``make_handler``."""

    pipeline: BillingPipeline

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        try:
            body = self.rfile.read(length).decode("utf-8")
            data = json.loads(body) if body else {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise BadRequest("invalid JSON") from None
        if not isinstance(data, dict):
            raise BadRequest("request body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    @property
    def _path(self) -> str:
        return urlsplit(self.path).path.rstrip("/") or "/"

    def do_GET(self) -> None:
        path = self._path
        matcher = self.pipeline.matcher
        if path == "/health":
            self._respond(200, {
                "status": "ok",
                "templates": len(matcher.catalog),
                "flagged_words": len(self.pipeline.flagged_words.flagged_words),
            })
        elif path == "/flagged-words":
            table = self.pipeline.flagged_words.flagged_words
            self._respond(200, {"flaggedWords": {
                word: {
                    "alternatives": list(entry.alternatives),
                    "reason": entry.reason,
                    "severity": entry.severity.value,
                }
                for word, entry in table.items()
            }})
        elif path == "/templates":
            self._respond(200, {
                "success": True,
                "templates": [g.summary() for g in matcher.list_groups()],
            })
        elif path.startswith("/templates/"):
            group = matcher.get(unquote(path[len("/templates/"):]))
            if group is None:
                self._respond(404, {"success": False, "error": "Template not found"})
            else:
                self._respond(200, {"success": True, "template": group.to_dict()})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
            path = self._path
            pipeline = self.pipeline

            if path == "/check-words":
                flags = pipeline.flagged_words.scan(body.get("text", ""))
                self._respond(200, {"flags": [f.to_dict() for f in flags], "count": len(flags)})

            elif path == "/replace-word":
                text = body.get("text")
                word = body.get("flaggedWord")
                replacement = body.get("replacement")
                if not all(isinstance(v, str) for v in (text, word, replacement)):
                    raise BadRequest("text, flaggedWord and replacement are required")
                self._respond(200, {"updatedText": pipeline.flagged_words.replace(text, word, replacement)})

            elif path == "/templates/suggest":
                description = body.get("description", "")
                suggestions = pipeline.matcher.suggest(description)
                self._respond(200, {
                    "success": True,
                    "suggestions": [s.to_dict() for s in suggestions],
                    "prompt": pipeline.matcher.format_for_prompt(suggestions, description),
                })

            elif path == "/anonymize":
                options = body.get("options")
                result = pipeline.anonymizer.anonymize(
                    body.get("text", ""), options if isinstance(options, dict) else None,
                )
                self._respond(200, result.to_dict())

            elif path == "/detect-identifiable-info":
                text = body.get("text", "")
                self._respond(200, {
                    **pipeline.anonymizer.detect(text).to_dict(),
                    "suggestions": [s.to_dict() for s in pipeline.anonymizer.suggestions_for(text)],
                })

            else:
                self._respond(404, {"error": "not found"})

        except BadRequest as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("error handling %s", self.path)
            self._respond(500, {"error": str(e)})


def make_handler(pipeline: BillingPipeline) -> type[BillingHandler]:
    return type("BoundBillingHandler", (BillingHandler,), {"pipeline": pipeline})


def create_server(
    pipeline: BillingPipeline | None = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> ThreadingHTTPServer:
    return ThreadingHTTPServer((host, port), make_handler(pipeline or create_pipeline()))


def serve(
    pipeline: BillingPipeline | None = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Start the billing-aid HTTP sidecar."""
    server = create_server(pipeline, host, port)
    print(f"billing-aid sidecar listening on http://{host}:{server.server_port}")
    logger.info("serving %d template group(s)", len(server.RequestHandlerClass.pipeline.matcher.catalog))
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        server.server_close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="billing-aid HTTP sidecar")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args()
    serve(host=args.host, port=args.port)
