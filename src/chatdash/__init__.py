"""chatdash — chat room and dashboard backend.

A single shared chat room with live updates pushed over WebSockets,
admin-editable dashboard shortcuts, and key/value app settings.
"""

__version__ = "0.1.0"
