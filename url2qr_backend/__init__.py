"""Backend for the URL2QR protocol server.

This package keeps the FastAPI route handlers in server.py thin:
- in-memory session registry + idle expiry sweeper
- JSON-RPC framing and per-request routing
- the url_to_qrcode tool and the PNG artifacts it writes

Session ids are treated as bearer tokens for protocol state only (unguessable
UUID4). There is no authentication; anyone holding an id can use that session.
"""
