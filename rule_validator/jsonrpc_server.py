#!/usr/bin/env python3
"""
JSON-RPC 2.0 Server for rule-validator

Provides a JSON-RPC interface to the Validator, so that any program able to
spawn a process and talk over stdin/stdout can validate form-style data.

Protocol: JSON-RPC 2.0 over stdin/stdout (newline-delimited JSON)
Specification: https://www.jsonrpc.org/specification

Usage:
    python -m rule_validator.jsonrpc_server [--debug]

Example request (stdin):
    {"jsonrpc":"2.0","id":1,"method":"validate",
     "params":{"data":{"age":"17"},"rules":{"age":"required|integer|min:18"}}}

Example response (stdout):
    {"jsonrpc":"2.0","id":1,"result":{"valid":false,"fails":["age"],
     "messages":{"age":{"Min":"age must be at least 18"}}}}
"""

import sys
import json
import signal
import logging
import argparse
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .message_store import get_message_templates, reset_message_templates
from .rule_parser import parse_rule_groups, to_plain_table
from .rules import FORCE_RULES, RULES
from .validator import Validator


class InvalidParamsError(ValueError):
    """Request params are missing or have the wrong shape."""


class MethodNotFoundError(ValueError):
    """Request names a method the server does not provide."""


class RuleValidatorJsonRpcServer:
    """JSON-RPC 2.0 server wrapping the Validator."""

    # JSON-RPC error codes
    ERROR_PARSE = -32700        # Invalid JSON
    ERROR_INVALID_REQUEST = -32600  # Invalid JSON-RPC structure
    ERROR_METHOD_NOT_FOUND = -32601  # Unknown method
    ERROR_INVALID_PARAMS = -32602   # Invalid parameters
    ERROR_INTERNAL = -32000      # Application error (catch-all)
    ERROR_CONFIGURATION = -32001  # Rules or message templates misconfigured

    def __init__(self, debug: bool = False):
        """
        Initialize JSON-RPC server.

        Args:
            debug: Enable debug logging to stderr
        """
        self.running = False
        self.debug = debug

        # Method dispatch table
        self.methods = {
            'validate': self._handle_validate,
            'parse_rules': self._handle_parse_rules,
            'discover_rules': self._handle_discover_rules,
            'reload_messages': self._handle_reload_messages,
        }

    def _log(self, message: str):
        """Log debug message to stderr (doesn't interfere with JSON-RPC on stdout)."""
        if self.debug:
            sys.stderr.write(f"[DEBUG] {message}\n")
            sys.stderr.flush()

    def start_server(self):
        """
        Start the JSON-RPC server loop.

        Reads requests from stdin, processes them, writes responses to stdout.
        Runs until EOF or stop signal received.
        """
        self.running = True
        self._log("rule-validator JSON-RPC server started")

        while self.running:
            try:
                line = sys.stdin.readline()

                if not line:
                    # EOF - clean shutdown
                    self._log("EOF received, shutting down")
                    break

                if not line.strip():
                    continue

                self._log(f"Received: {line.strip()}")
                response = self.handle_request(line)
                self._send_response(response)

            except KeyboardInterrupt:
                self._log("KeyboardInterrupt received, shutting down")
                break

        self._log("Server stopped")

    def stop_server(self):
        """
        Stop the server gracefully.

        Sets running flag to False, causing the main loop to exit.
        """
        self.running = False
        self._log("Stop signal received")

    def handle_request(self, request_json: str) -> Dict[str, Any]:
        """
        Parse and process a JSON-RPC request.

        Args:
            request_json: JSON-RPC request string

        Returns:
            JSON-RPC response dict (success or error)
        """
        request_id = None

        try:
            try:
                request = json.loads(request_json)
            except json.JSONDecodeError as e:
                return self._error_response(None, self.ERROR_PARSE,
                                            f"Parse error: {e}")

            if not isinstance(request, dict):
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                            "Request must be a JSON object")

            if request.get("jsonrpc") != "2.0":
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                            f"Invalid JSON-RPC version: {request.get('jsonrpc')}")

            request_id = request.get("id")
            method = request.get("method")
            params = request.get("params", {})

            if not method:
                return self._error_response(request_id, self.ERROR_INVALID_REQUEST,
                                            "Missing 'method' field")

            if not isinstance(params, dict):
                return self._error_response(request_id, self.ERROR_INVALID_PARAMS,
                                            f"Params must be an object, got {type(params).__name__}")

            self._log(f"Dispatching method: {method}")
            result = self._dispatch(method, params)

            return self._success_response(request_id, result)

        except MethodNotFoundError as e:
            return self._error_response(request_id, self.ERROR_METHOD_NOT_FOUND, str(e))

        except InvalidParamsError as e:
            return self._error_response(request_id, self.ERROR_INVALID_PARAMS, str(e))

        except ConfigurationError as e:
            return self._error_response(request_id, self.ERROR_CONFIGURATION, str(e),
                                        data={"type": type(e).__name__})

        except Exception as e:
            # Catch any unexpected errors
            self._log(f"Error processing request: {e}")
            return self._error_response(request_id, self.ERROR_INTERNAL,
                                        f"Internal error: {e}")

    def _dispatch(self, method: str, params: Dict[str, Any]) -> Any:
        """
        Dispatch request to the matching handler.

        Raises:
            MethodNotFoundError: If method is not provided by this server
        """
        if method not in self.methods:
            raise MethodNotFoundError(f"Method not found: {method}")

        handler = self.methods[method]
        return handler(params)

    def _require_object(self, params: Dict[str, Any], name: str) -> Dict[str, Any]:
        value = params.get(name)
        if value is None:
            raise InvalidParamsError(f"Missing required parameter: {name}")
        if not isinstance(value, dict):
            raise InvalidParamsError(
                f"Parameter '{name}' must be an object, got {type(value).__name__}"
            )
        return value

    # Method handlers

    def _handle_validate(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate' method."""
        data = self._require_object(params, 'data')
        rules = self._require_object(params, 'rules')

        validator = Validator(data, rules)
        valid = validator.validate()
        return {
            "valid": valid,
            "fails": validator.fails(),
            "messages": validator.messages(),
        }

    def _handle_parse_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'parse_rules' method."""
        rules = self._require_object(params, 'rules')
        return to_plain_table(parse_rule_groups(rules))

    def _handle_discover_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'discover_rules' method."""
        # No parameters required
        templates = get_message_templates()
        return {
            definition.name: {
                "description": definition.description,
                "min_parameters": definition.min_parameters,
                "checked_when_absent": kind in FORCE_RULES,
                "message_template": templates.get(definition.name),
            }
            for kind, definition in RULES.items()
        }

    def _handle_reload_messages(self, params: Dict[str, Any]) -> Any:
        """Handle 'reload_messages' method."""
        # No parameters required
        reset_message_templates()
        store = get_message_templates()
        return {
            "status": "ok",
            "location": store.location,
            "templates": len(store.templates),
        }

    # Response formatting

    def _success_response(self, request_id: Any, result: Any) -> Dict[str, Any]:
        """Format successful JSON-RPC response."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }

    def _error_response(self, request_id: Any, code: int, message: str,
                        data: Optional[Any] = None) -> Dict[str, Any]:
        """Format JSON-RPC error response."""
        error = {
            "code": code,
            "message": message
        }
        if data is not None:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": error
        }

    def _send_response(self, response: Dict[str, Any]):
        """Send JSON-RPC response to stdout."""
        response_json = json.dumps(response)
        self._log(f"Sending: {response_json}")
        sys.stdout.write(response_json + "\n")
        sys.stdout.flush()


def main():
    """Main entry point for JSON-RPC server."""
    parser = argparse.ArgumentParser(
        description="rule-validator JSON-RPC 2.0 Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m rule_validator.jsonrpc_server
  python -m rule_validator.jsonrpc_server --debug

Supported methods:
  - validate          params: {"data": {...}, "rules": {...}}
  - parse_rules       params: {"rules": {...}}
  - discover_rules
  - reload_messages

Protocol: JSON-RPC 2.0 over stdin/stdout
See: https://www.jsonrpc.org/specification
        """
    )
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging to stderr')

    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")

    server = RuleValidatorJsonRpcServer(debug=args.debug)

    # Handle signals for graceful shutdown
    def signal_handler(sig, frame):
        server.stop_server()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    # Start server (blocks until stopped)
    server.start_server()


if __name__ == "__main__":
    main()
