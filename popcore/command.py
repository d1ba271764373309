# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''POP3 command layer.

Every command is written and its response read before anything else may be
sent; POP3 has no pipelining here.
'''

__all__ = [
    'MessageSource',
    'POP3Command',
]

import os

from popcore.exceptions import *
from popcore.utilities import *
from popcore.response import *
import popcore.logging


#######################################
class MessageSource(object):
    '''Anything a MailHandle can fetch message lines from.

    Sub-classes must provide:

      retr(number) - return the lines of message <number>, each with its
                     line terminator.
      top(number, lines) - return the header and at most <lines> body lines
                     of message <number>, in the same form.
    '''
    def retr(self, number):
        raise NotImplementedError('virtual')

    def top(self, number, lines):
        raise NotImplementedError('virtual')


#######################################
class POP3Command(MessageSource):
    def __init__(self, transport):
        self.log = popcore.logging.Logger()
        self.transport = transport
        self.reader = ResponseReader(transport)

    def putcmd(self, line):
        if '\r' in line or '\n' in line:
            raise popProtocolViolation(
                'refusing to send a command containing a line break'
            )
        self.log.debug('C: %s' % mask_command(line) + os.linesep)
        self.transport.sendline(tobytes(line))

    def shortcmd(self, line):
        '''Send a command and return its StatusResponse.'''
        self.putcmd(line)
        return self.reader.read_status()

    def _longcmd(self, line, maxlines=None):
        resp = self.shortcmd(line)
        if not resp.ok:
            return resp, None
        return resp, self.reader.read_multiline(maxlines)

    def user(self, identifier):
        return self.shortcmd('USER %s' % identifier)

    def pass_(self, secret):
        return self.shortcmd('PASS %s' % secret)

    def apop(self, identifier, digest):
        return self.shortcmd('APOP %s %s' % (identifier, digest))

    def auth(self, mechanism):
        self.putcmd('AUTH %s' % mechanism)
        return self.reader.read_continuation()

    def auth_response(self, data):
        '''Send a bare line answering a SASL continuation.'''
        self.putcmd(tostr(data))
        return self.reader.read_continuation()

    def retr(self, number):
        resp, lines = self._longcmd('RETR %d' % number)
        if not resp.ok:
            raise popRetrievalError(
                'failed to retrieve message %d; server said %s'
                % (number, resp.text)
            )
        return lines

    def top(self, number, lines):
        resp, body = self._longcmd('TOP %d %d' % (number, lines), lines)
        if not resp.ok:
            raise popRetrievalError(
                'failed to retrieve top %d lines of message %d; server said %s'
                % (lines, number, resp.text)
            )
        return body

    def quit(self):
        return self.shortcmd('QUIT')
