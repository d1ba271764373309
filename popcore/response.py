# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''Parsing of POP3 server responses.

Three shapes of response are read from a transport:

  status lines      +OK text / -ERR text
  continuations     "+ challenge" during a SASL exchange
  multiline bodies  lines following a +OK, dot-stuffed, ended by a lone "."

Body lines are returned as bytes with their terminators intact, so joining
them gives the message exactly as the server stored it.
'''

__all__ = [
    'Continuation',
    'ResponseReader',
    'StatusResponse',
]

import os
from collections import namedtuple

from popcore.exceptions import *
from popcore.constants import CRLF
from popcore.utilities import *
import popcore.logging

StatusResponse = namedtuple('StatusResponse', ('ok', 'text'))
Continuation = namedtuple('Continuation', ('text', ))


def _text(line, prefix):
    # "+OK text", "+OK", "-ERR text"
    return tostr(line.rstrip(CRLF)[len(prefix):].lstrip(b' '))


#######################################
class ResponseReader(object):
    def __init__(self, transport):
        self.log = popcore.logging.Logger()
        self.transport = transport

    def readline(self):
        line = self.transport.readline()
        self.log.trace('S: %r' % line + os.linesep)
        return line

    def _status(self, line):
        if line.startswith(b'+OK'):
            return StatusResponse(True, _text(line, b'+OK'))
        if line.startswith(b'-ERR'):
            return StatusResponse(False, _text(line, b'-ERR'))
        return None

    def read_status(self):
        '''Read one status line.  Anything other than +OK or -ERR is a
        protocol violation.
        '''
        line = self.readline()
        resp = self._status(line)
        if resp is None:
            raise popProtocolViolation('unexpected response "%s"'
                                       % tostr(line.rstrip(CRLF)))
        self.log.debug('S: %s %s' % (resp.ok and '+OK' or '-ERR', resp.text)
                       + os.linesep)
        return resp

    def read_continuation(self):
        '''Read the server's answer to an AUTH step.

        Returns a Continuation for "+ ..." lines, and a StatusResponse for
        +OK / -ERR.
        '''
        line = self.readline()
        resp = self._status(line)
        if resp is not None:
            self.log.debug('S: %s %s'
                           % (resp.ok and '+OK' or '-ERR', resp.text)
                           + os.linesep)
            return resp
        if line.startswith(b'+'):
            self.log.debug('S: + (continuation)' + os.linesep)
            return Continuation(_text(line, b'+'))
        raise popProtocolViolation('unexpected response "%s"'
                                   % tostr(line.rstrip(CRLF)))

    def read_multiline(self, maxlines=None):
        '''Read the body of a multiline response, up to and excluding the
        terminating "." line.

        Lines starting with ".." have the stuffed dot removed.  If maxlines
        is given, the header block and blank separator are kept, followed by
        at most maxlines body lines; further lines are read and dropped so
        the stream stays in step.  A response with no blank separator is
        cut to its first maxlines lines.
        '''
        lines = []
        bodylines = None
        octets = 0
        while True:
            line = self.readline()
            if line.rstrip(CRLF) == b'.':
                break
            if line.startswith(b'..'):
                line = line[1:]
            if maxlines is not None:
                if bodylines is None:
                    if not line.rstrip(CRLF):
                        # blank line between header and body
                        bodylines = 0
                elif bodylines < maxlines:
                    bodylines += 1
                else:
                    continue
            octets += len(line)
            lines.append(line)
        if maxlines is not None and bodylines is None:
            # no header/body separator
            lines = lines[:maxlines]
            octets = sum(len(line) for line in lines)
        self.log.debug('read %d lines, %d octets' % (len(lines), octets)
                       + os.linesep)
        return lines
