import ctypes
import ctypes.util
import logging
import sys

from .errors import PublishError

logger = logging.getLogger(__name__)


class StdoutPublisher(object):
    def __init__(self, stream = None):
        self.stream = sys.stdout if stream is None else stream

    def publish(self, text):
        self.stream.write(text + '\n')
        self.stream.flush()

    def close(self):
        pass


class RootWindowPublisher(object):
    """Stores the status as the name of the X root window, where dwm reads it."""

    f_XOpenDisplay = ctypes.CFUNCTYPE(ctypes.c_void_p, ctypes.c_char_p)
    pi_XOpenDisplay = ((1, 'display_name', None),)
    f_XDefaultRootWindow = ctypes.CFUNCTYPE(ctypes.c_ulong, ctypes.c_void_p)
    pi_XDefaultRootWindow = ((1, 'display'),)
    f_XStoreName = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_void_p, ctypes.c_ulong, ctypes.c_char_p)
    pi_XStoreName = ((1, 'display'), (1, 'w'), (1, 'window_name'))
    f_XDisplay = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_void_p)
    pi_XDisplay = ((1, 'display'),)

    def __init__(self, display = None, library = None):
        library = library or ctypes.util.find_library('X11') or 'libX11.so.6'
        try:
            self.lib = ctypes.CDLL(library)
        except OSError as e:
            raise PublishError('could not load libX11', context = {'library': library}, cause = e) from e
        self.XOpenDisplay = self.f_XOpenDisplay(('XOpenDisplay', self.lib), self.pi_XOpenDisplay)
        self.XDefaultRootWindow = self.f_XDefaultRootWindow(('XDefaultRootWindow', self.lib), self.pi_XDefaultRootWindow)
        self.XStoreName = self.f_XStoreName(('XStoreName', self.lib), self.pi_XStoreName)
        self.XFlush = self.f_XDisplay(('XFlush', self.lib), self.pi_XDisplay)
        self.XCloseDisplay = self.f_XDisplay(('XCloseDisplay', self.lib), self.pi_XDisplay)

        self.display = self.XOpenDisplay(display.encode() if display else None)
        if not self.display:
            raise PublishError('cannot open X display', context = {'display': display or '$DISPLAY'})
        self.window = self.XDefaultRootWindow(self.display)
        logger.debug('publishing to root window %#x', self.window)

    def publish(self, text):
        if self.display is None:
            raise PublishError('display is closed')
        self.XStoreName(self.display, self.window, text.replace('\0', '').encode('utf-8'))
        self.XFlush(self.display)

    def close(self):
        if self.display is not None:
            self.XCloseDisplay(self.display)
            self.display = None
