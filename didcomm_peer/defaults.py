"""Default settings values."""

HTTP_TIMEOUT = 30.0
WS_OPEN_TIMEOUT = 10.0
WS_SEND_TIMEOUT = 10.0

DEFAULT_SETTINGS = {
    "transport.http_timeout": HTTP_TIMEOUT,
    "transport.ws_open_timeout": WS_OPEN_TIMEOUT,
    "transport.ws_send_timeout": WS_SEND_TIMEOUT,
    "transport.emit_new_mime_type": False,
}
