"""
MPRIS 2 object exported at /org/mpris/MediaPlayer2.

Implements org.mpris.MediaPlayer2 and org.mpris.MediaPlayer2.Player on one
dbus.service.Object, plus org.freedesktop.DBus.Properties, which
dbus-python does not provide for us.

https://specifications.freedesktop.org/mpris-spec/latest/
"""

from contextlib import contextmanager
from typing import Callable, Dict, Optional

import dbus
import dbus.exceptions
import dbus.service

from . import config
from .engine import EventKind
from .errors import BridgeError, UnsupportedOperationError
from .log import debug, log
from .state import PLAYER_CAPABILITIES, ROOT_CAPABILITIES, PlayerCommands, PlayerState

ROOT_IFACE = config.ROOT_IFACE
PLAYER_IFACE = config.PLAYER_IFACE
PROPERTIES_IFACE = config.PROPERTIES_IFACE


class FailedError(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.Failed"


class NotSupportedError(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.NotSupported"


class UnknownInterfaceError(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.UnknownInterface"


class UnknownPropertyError(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.UnknownProperty"


class PropertyReadOnlyError(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.PropertyReadOnly"


@contextmanager
def bus_errors(action: str):
    """Turn bridge failures into D-Bus error replies"""
    try:
        yield
    except UnsupportedOperationError as e:
        raise NotSupportedError(str(e)) from e
    except BridgeError as e:
        log(f"[Error] {action} failed: {e}")
        raise FailedError(str(e)) from e


# Metadata entries whose D-Bus type isn't a plain string
METADATA_SIGNATURES = {
    "mpris:trackid": "o",
    "mpris:length": "x",
}


def dbus_metadata(metadata: Dict[str, object]) -> dbus.Dictionary:
    """Convert a metadata map to a{sv} with the MPRIS value types"""
    out = {}
    for key, value in metadata.items():
        if value is None:
            continue
        signature = METADATA_SIGNATURES.get(key)
        if signature is None:
            signature = "as" if isinstance(value, (list, tuple)) else "s"
        out[key] = to_dbus(signature, value)
    return dbus.Dictionary(out, signature="sv")


def to_dbus(signature: str, value):
    if signature == "b":
        return dbus.Boolean(value)
    if signature == "d":
        return dbus.Double(value)
    if signature == "x":
        return dbus.Int64(value)
    if signature == "o":
        return dbus.ObjectPath(value)
    if signature == "as":
        return dbus.Array([str(v) for v in value], signature="s")
    if signature == "a{sv}":
        return dbus_metadata(value)
    return dbus.String(value)


class Property:
    """One D-Bus property: its signature, getter and optional setter"""

    def __init__(self, signature: str, getter: Callable, setter: Optional[Callable] = None):
        self.signature = signature
        self.getter = getter
        self.setter = setter

    @property
    def access(self) -> str:
        return "readwrite" if self.setter else "read"

    def wrap(self, value):
        return to_dbus(self.signature, value)

    def read(self):
        return self.wrap(self.getter())


def constant(signature: str, value) -> Property:
    return Property(signature, lambda: value)


class MediaPlayer2(dbus.service.Object):
    """
    The exported MPRIS player.

    Dynamic properties are read from the engine on every call; everything
    else is constant. Transport methods forward a command to the engine
    and return immediately.
    """

    def __init__(self, state: PlayerState, commands: PlayerCommands, conn=None, object_path=None):
        dbus.service.Object.__init__(self, conn, object_path)
        self.state = state
        self.commands = commands

        root = {name: constant("b", value) for name, value in ROOT_CAPABILITIES.items()}
        root.update({
            "Fullscreen": Property("b", lambda: False, self._set_fullscreen),
            "Identity": Property("s", lambda: state.identity),
            "DesktopEntry": Property("s", lambda: state.desktop_entry),
            "SupportedUriSchemes": constant("as", []),
            "SupportedMimeTypes": constant("as", []),
        })

        player = {name: constant("b", value) for name, value in PLAYER_CAPABILITIES.items()}
        player.update({
            "PlaybackStatus": Property("s", lambda: state.playback_state().value),
            "Rate": Property("d", lambda: state.rate, self._ignore_write("Rate")),
            "MinimumRate": Property("d", lambda: state.rate),
            "MaximumRate": Property("d", lambda: state.rate),
            "Shuffle": Property("b", state.shuffle_enabled, self._ignore_write("Shuffle")),
            "Metadata": Property("a{sv}", state.current_metadata),
            "Volume": Property("d", lambda: state.volume, self._ignore_write("Volume")),
            "Position": Property("x", lambda: state.position),
        })

        self.properties: Dict[str, Dict[str, Property]] = {
            ROOT_IFACE: root,
            PLAYER_IFACE: player,
        }

    # org.mpris.MediaPlayer2

    @dbus.service.method(ROOT_IFACE)
    def Raise(self):
        log("[DBus] Raise called")

    @dbus.service.method(ROOT_IFACE)
    def Quit(self):
        log("[DBus] Quit called")

    def _set_fullscreen(self, value):
        raise UnsupportedOperationError("cannot set fullscreen property")

    # org.mpris.MediaPlayer2.Player

    @dbus.service.method(PLAYER_IFACE)
    def Next(self):
        with bus_errors("Next"):
            self.commands.send(EventKind.NEXT)

    @dbus.service.method(PLAYER_IFACE)
    def Previous(self):
        with bus_errors("Previous"):
            self.commands.send(EventKind.PREV)

    @dbus.service.method(PLAYER_IFACE)
    def Pause(self):
        with bus_errors("Pause"):
            self.commands.pause()

    @dbus.service.method(PLAYER_IFACE)
    def PlayPause(self):
        with bus_errors("PlayPause"):
            self.commands.send(EventKind.TOGGLE_PAUSE)

    @dbus.service.method(PLAYER_IFACE)
    def Stop(self):
        with bus_errors("Stop"):
            self.commands.send(EventKind.STOP)

    @dbus.service.method(PLAYER_IFACE)
    def Play(self):
        with bus_errors("Play"):
            self.commands.send(EventKind.PLAY_CURRENT)

    @dbus.service.method(PLAYER_IFACE, in_signature="x")
    def Seek(self, offset):
        with bus_errors("Seek"):
            raise UnsupportedOperationError("CanSeek is permanently false")

    @dbus.service.method(PLAYER_IFACE, in_signature="ox")
    def SetPosition(self, track_id, position):
        with bus_errors("SetPosition"):
            raise UnsupportedOperationError("CanSeek is permanently false")

    @dbus.service.method(PLAYER_IFACE, in_signature="s")
    def OpenUri(self, uri):
        with bus_errors("OpenUri"):
            raise UnsupportedOperationError("OpenUri is not supported")

    @dbus.service.signal(PLAYER_IFACE, signature="x")
    def Seeked(self, position):
        debug(f"[DBus] Seeked: {position}")

    def _ignore_write(self, name: str) -> Callable:
        def setter(value):
            debug(f"[DBus] Ignoring write to {name}: {value}")
        return setter

    # org.freedesktop.DBus.Properties

    def _lookup(self, interface: str, prop: str) -> Property:
        try:
            props = self.properties[interface]
        except KeyError:
            raise UnknownInterfaceError(f"no such interface: {interface}") from None
        try:
            return props[prop]
        except KeyError:
            raise UnknownPropertyError(f"no such property: {interface}.{prop}") from None

    @dbus.service.method(PROPERTIES_IFACE, in_signature="ss", out_signature="v")
    def Get(self, interface, prop):
        debug(f"[DBus] Get {interface}.{prop}")
        entry = self._lookup(interface, prop)
        with bus_errors(f"Get {prop}"):
            return entry.read()

    @dbus.service.method(PROPERTIES_IFACE, in_signature="s", out_signature="a{sv}")
    def GetAll(self, interface):
        if interface not in self.properties:
            raise UnknownInterfaceError(f"no such interface: {interface}")

        result = {}
        for name, entry in self.properties[interface].items():
            try:
                result[name] = entry.read()
            except BridgeError as e:
                log(f"[Error] GetAll skipping {name}: {e}")
        return dbus.Dictionary(result, signature="sv")

    @dbus.service.method(PROPERTIES_IFACE, in_signature="ssv")
    def Set(self, interface, prop, value):
        entry = self._lookup(interface, prop)
        if entry.setter is None:
            raise PropertyReadOnlyError(f"{prop} is read-only")
        with bus_errors(f"Set {prop}"):
            entry.setter(value)

    @dbus.service.signal(PROPERTIES_IFACE, signature="sa{sv}as")
    def PropertiesChanged(self, interface, changed, invalidated):
        pass

    def emit_player_properties(self, changed: Dict[str, object]):
        """Send PropertiesChanged for the Player interface"""
        player = self.properties[PLAYER_IFACE]
        typed = dbus.Dictionary(
            {name: player[name].wrap(value) for name, value in changed.items()},
            signature="sv",
        )
        self.PropertiesChanged(PLAYER_IFACE, typed, dbus.Array([], signature="s"))
        log(f"[DBus] PropertiesChanged: {list(changed.keys())}")

    # org.freedesktop.DBus.Introspectable

    def property_xml(self, interface: str) -> str:
        return "".join(
            f'    <property name="{name}" type="{entry.signature}" access="{entry.access}"/>\n'
            for name, entry in self.properties[interface].items()
        )

    @dbus.service.method(dbus.INTROSPECTABLE_IFACE, in_signature="", out_signature="s",
                         path_keyword="object_path", connection_keyword="connection")
    def Introspect(self, object_path, connection):
        xml = dbus.service.Object.Introspect(self, object_path, connection)
        for interface in self.properties:
            tag = f'<interface name="{interface}">\n'
            xml = xml.replace(tag, tag + self.property_xml(interface), 1)
        return xml
