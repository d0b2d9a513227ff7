"""
Exception taxonomy for the bridge.

Everything here derives from BridgeError. The D-Bus object model turns
BridgeError into org.freedesktop.DBus.Error.Failed replies; the event
router logs them and keeps routing. Only ServiceInitError is fatal.
"""


class BridgeError(Exception):
    """Base class for bridge failures"""


class MissingCapabilityError(BridgeError):
    """An engine function the operation needs is not available"""

    def __init__(self, capability: str, action: str):
        super().__init__(f"unable to {action}: engine capability '{capability}' is unavailable")
        self.capability = capability


class InvalidPlaybackStateError(BridgeError):
    """The output device reported a state code we don't know"""

    def __init__(self, code):
        super().__init__(f"invalid playback state: {code}")
        self.code = code


class UnsupportedOperationError(BridgeError):
    """Operation is permanently unsupported (seeking, OpenUri, fullscreen)"""


class EventDecodeError(BridgeError):
    """An event context does not match the payload type of its kind"""


class UnknownEventError(BridgeError):
    """The engine sent an event id we don't recognize"""

    def __init__(self, kind):
        super().__init__(f"unknown event id: {kind}")
        self.kind = kind


class ServiceStateError(BridgeError):
    """Lifecycle operation called in the wrong state (e.g. before init)"""


class ServiceInitError(BridgeError):
    """Could not connect to the bus or claim the service name"""
