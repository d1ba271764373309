# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''Logging support for popcore.

Messages of a range of levels can be routed to one stream and messages of
other levels to another (protocol traces to a debug file, warnings to
stderr).  With no handlers configured only warnings and worse are written,
to stderr, so a library user gets no chatter by default.
'''

__all__ = [
    'Logger',
]

import sys
import os.path
import traceback

from popcore.constants import *

#######################################
class _Logger(object):
    '''Class for logging.  Do not instantiate directly; use Logger() instead,
    to keep this a singleton.
    '''
    def __init__(self):
        '''Create a logger.'''
        self.handlers = []
        self.newline = True

    def __call__(self):
        return self

    def addhandler(self, stream, minlevel, maxlevel=CRITICAL):
        '''Add a handler for logged messages.

        Logged messages of at least level <minlevel> (and at most level
        <maxlevel>, default CRITICAL) will be output to <stream>.
        '''
        self.handlers.append({'minlevel' : minlevel, 'stream' : stream,
                              'newline' : True, 'maxlevel' : maxlevel})

    def removehandler(self, stream):
        '''Remove every handler writing to <stream>.'''
        self.handlers = [handler for handler in self.handlers
                         if handler['stream'] is not stream]

    def clearhandlers(self):
        '''Clear the list of handlers.'''
        self.handlers = []

    def _write(self, state, stream, msglevel, msgtxt):
        if not state['newline'] and msglevel == DEBUG:
            stream.write('\n')
        stream.write(msgtxt)
        stream.flush()
        state['newline'] = msgtxt.endswith('\n')

    def log(self, msglevel, msgtxt):
        '''Log a message of level <msglevel> containing text <msgtxt>.'''
        if isinstance(msgtxt, (bytes, bytearray)):
            msgtxt = bytes(msgtxt).decode('utf-8', 'replace')
        for handler in self.handlers:
            if msglevel < handler['minlevel'] or msglevel > handler['maxlevel']:
                continue
            self._write(handler, handler['stream'], msglevel, msgtxt)
        if not self.handlers and msglevel >= WARNING:
            state = {'newline' : self.newline}
            self._write(state, sys.stderr, msglevel, msgtxt)
            self.newline = state['newline']

    def trace(self, msg='trace\n'):
        '''Log a message with level TRACE.

        The message will be prefixed with filename, line number, and function
        name of the calling code.
        '''
        if not self.handlers:
            return
        trace = traceback.extract_stack()[-2]
        msg = '%s [%s:%i] %s' % (trace[FUNCNAME] + '()',
            os.path.basename(trace[FILENAME]),
            trace[LINENO],
            msg
        )
        self.log(TRACE, msg)

    def debug(self, msg):
        '''Log a message with level DEBUG.'''
        self.log(DEBUG, msg)

    def moreinfo(self, msg):
        '''Log a message with level MOREINFO.'''
        self.log(MOREINFO, msg)

    def info(self, msg):
        '''Log a message with level INFO.'''
        self.log(INFO, msg)

    def warning(self, msg):
        '''Log a message with level WARNING.'''
        self.log(WARNING, msg)

    def error(self, msg):
        '''Log a message with level ERROR.'''
        self.log(ERROR, msg)

    def critical(self, msg):
        '''Log a message with level CRITICAL.'''
        self.log(CRITICAL, msg)

    # aliases
    warn = warning

Logger = _Logger()
