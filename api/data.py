"""
/api/data.py - Read and write the delivery plan tables

Vercel Serverless Function

GET  /api/data?action=read&sheet=Deliveries
POST /api/data
Body: {"action": "save",   "sheet": "SKUs", "data": [{...}, ...]}
      {"action": "add",    "sheet": "Deliveries", "row": {...}}
      {"action": "update", "sheet": "Deliveries", "id": "1", "row": {...}}
      {"action": "delete", "sheet": "Plans", "id": "1"}

Every response is JSON. Errors come back as {"error": "..."}; a missing
sheet or id on update/delete is {"success": false, "error": "..."}.
"""

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import json
import os
import sys
import threading
from urllib.parse import urlparse, parse_qs

from .gateway import Gateway, GatewayError
from .logger import get_logger
from .schemas import load_schemas
from .sheets import SheetsStore
from .store import MemoryStore


logger = get_logger(__name__)

_gateway = None
_gateway_lock = threading.Lock()


def get_gateway() -> Gateway:
    """Build the process-wide gateway on first use"""
    global _gateway
    with _gateway_lock:
        if _gateway is None:
            backend = os.environ.get('TABLE_STORE_BACKEND', 'sheets').lower()
            if backend == 'memory':
                store = MemoryStore()
            elif backend == 'sheets':
                store = SheetsStore()
            else:
                raise ValueError(f'Unknown TABLE_STORE_BACKEND: {backend}')

            _gateway = Gateway(store, load_schemas())
            logger.info('gateway ready (%s backend)', backend)
        return _gateway


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler"""

    # Tests and local runs can pin a gateway on a subclass
    gateway: Gateway = None

    def _get_gateway(self) -> Gateway:
        return self.gateway or get_gateway()

    def do_GET(self):
        """GET /api/data?action=read&sheet=... - Return all rows of a table"""
        try:
            parsed = urlparse(self.path)
            params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
            action = params.get('action')

            result = self._get_gateway().handle(action, params, method='GET')
            self._send_json(200, result)

        except GatewayError as e:
            self._send_json(400, {'error': e.message})
        except Exception as e:
            logger.exception('GET %s failed', self.path)
            self._send_json(500, {'error': str(e)})

    def do_POST(self):
        """POST /api/data - Run a write action from the JSON body"""
        try:
            content_length = int(self.headers.get('Content-Length', 0))
            body = self.rfile.read(content_length)

            try:
                data = json.loads(body)
            except ValueError as e:
                self._send_json(400, {'error': f'Invalid JSON body: {e}'})
                return

            if not isinstance(data, dict):
                self._send_json(400, {'error': 'Request body must be a JSON object'})
                return

            result = self._get_gateway().handle(data.get('action'), data, method='POST')
            self._send_json(200, result)

        except GatewayError as e:
            self._send_json(400, {'error': e.message})
        except Exception as e:
            logger.exception('POST %s failed', self.path)
            self._send_json(500, {'error': str(e)})

    def do_OPTIONS(self):
        """Handle CORS preflight"""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def _send_json(self, status: int, payload) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode('utf-8')

        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()

        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug('%s - %s', self.address_string(), format % args)


def serve(port: int = 3000) -> None:
    """Run the handler locally, e.g. TABLE_STORE_BACKEND=memory python -m api.data"""
    server = ThreadingHTTPServer(('127.0.0.1', port), handler)
    logger.info('serving on http://127.0.0.1:%d/', port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    serve(int(sys.argv[1]) if len(sys.argv) > 1 else 3000)
