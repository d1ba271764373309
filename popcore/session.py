# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''POP3 sessions and message handles.

A POP3Session moves through four states:

  unstarted -> authorizing -> transaction -> finished

start() connects (unless a transport was supplied), reads the greeting and
runs the configured authentication strategy.  Messages can only be fetched
in the transaction state.  finish() sends QUIT where appropriate, releases
the transport and never raises; use the session as a context manager to
have it called on every exit path:

  with POP3Session(server='mail.example.com', auth='apop') as session:
      session.start(Credentials('user', 'secret'))
      data = session.mail(1).retrieve()
'''

__all__ = [
    'Credentials',
    'MailHandle',
    'POP3Session',
]

import os
from collections import namedtuple

from popcore.exceptions import *
from popcore.constants import *
from popcore.utilities import *
from popcore.baseclasses import *
from popcore.auth import *
from popcore.command import *
from popcore.transport import connect

Credentials = namedtuple('Credentials', ('identifier', 'secret'))


#######################################
class MailHandle(object):
    '''One message on the server, by sequence number.

    The handle holds no resources; <source> is the MessageSource (normally
    the session) that fetches the message lines.
    '''
    def __init__(self, number, size, source):
        self.number = int(number)
        self.size = size
        self.source = source

    def __repr__(self):
        return '<MailHandle %d (%s octets)>' % (self.number, self.size)

    def _collect(self, lines, dest):
        if dest is None:
            dest = bytearray()
        for line in lines:
            if isinstance(dest, bytearray):
                dest.extend(line)
            elif isinstance(dest, list):
                dest.append(line)
            else:
                dest.write(line)
        return dest

    def retrieve(self, dest=None):
        '''Fetch the whole message with RETR.

        Returns a new bytearray holding the message, or, if <dest> is given
        (a bytearray, a list, or anything with a write() method), appends
        the lines to it and returns it.
        '''
        return self._collect(self.source.retr(self.number), dest)

    def retrieve_top(self, lines, dest=None):
        '''Fetch the header and the first <lines> body lines with TOP.'''
        if lines < 0:
            raise ValueError('line count must not be negative (%s)' % lines)
        return self._collect(self.source.top(self.number, lines), dest)

    def header(self, dest=None):
        return self.retrieve_top(0, dest)


#######################################
class POP3Session(ConfigurableBase, MessageSource):
    '''Client session with one POP3 server.
    '''
    _confitems = (
        ConfString(name='server'),
        ConfInt(name='port', required=False, default=None),
        ConfBool(name='use_ssl', required=False, default=False),
        ConfInt(name='timeout', required=False, default=180),
        ConfAuthentication(name='auth', required=False, default='plain'),
        ConfBytes(name='apop_challenge', required=False, default=None),
        ConfFile(name='keyfile', required=False, default=None),
        ConfFile(name='certfile', required=False, default=None),
        ConfFile(name='ca_certs', required=False, default=None),
        ConfString(name='ssl_ciphers', required=False, default=None),
        ConfString(name='ssl_cert_hostname', required=False, default=None),
        ConfInstance(name='transport', required=False, default=None),
    )

    def __init__(self, **args):
        ConfigurableBase.__init__(self, **args)
        if self.conf['port'] is None:
            self.conf['port'] = (self.conf['use_ssl'] and POP3_SSL_PORT
                                 or POP3_PORT)
        self.auth = self.conf['auth']
        self.transport = self.conf['transport']
        self.command = None
        self.greeting = None
        self.challenge = None
        self.state = UNSTARTED

    def __str__(self):
        return 'POP3Session:%s:%s (%s)' % (
            self.conf.get('server', 'server'),
            self.conf.get('port', 'port'),
            self.auth.name
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.finish()
        return False

    def showconf(self):
        self.log.trace()
        self.log.info('POP3Session(%s)' % self._confstring() + os.linesep)

    def uses_apop(self):
        return isinstance(self.auth, APOPAuthentication)

    def uses_oauth2(self):
        return isinstance(self.auth, XOAUTH2Authentication)

    def started(self):
        return self.state == TRANSACTION

    def getwelcome(self):
        return self.greeting

    def _read_greeting(self):
        resp = self.command.reader.read_status()
        if not resp.ok:
            raise popConnectionError('server refused session; server said %s'
                                     % resp.text)
        self.greeting = resp.text
        self.challenge = (self.conf['apop_challenge']
                          or parse_challenge(resp.text))
        self.log.debug('greeting "%s", APOP challenge %s'
                       % (resp.text, self.challenge and 'present' or 'absent')
                       + os.linesep)

    def start(self, credentials):
        '''Connect if necessary, read the greeting and authenticate.

        On popAuthenticationError the session returns to the unstarted state
        with the connection still open; start() may be called again, or
        finish().  Connection and protocol errors end the session.
        '''
        self.log.trace()
        if self.state == TRANSACTION:
            raise popSessionStateError('POP3 session already started')
        if self.state == FINISHED:
            raise popSessionStateError('POP3 session already finished')
        credentials = Credentials(*credentials)
        self.state = AUTHORIZING
        try:
            if self.transport is None:
                self.transport = connect(self.conf)
            if self.command is None:
                self.command = POP3Command(self.transport)
            if self.greeting is None:
                self._read_greeting()
            engine = AuthenticationEngine(self.command)
            self.auth.with_challenge(self.challenge).authenticate(
                engine, credentials
            )
        except popAuthenticationError:
            self.state = UNSTARTED
            raise
        except Exception:
            self._release()
            self.state = FINISHED
            raise
        self.state = TRANSACTION
        self.log.moreinfo('%s: logged in as %s' % (self, credentials.identifier)
                          + os.linesep)

    def auth_only(self, credentials):
        '''Authenticate and immediately log out again.'''
        try:
            self.start(credentials)
        finally:
            self.finish()

    def _release(self):
        if self.transport is None:
            return
        try:
            self.transport.close()
        except (popError, OSError) as o:
            self.log.warning('error closing %s (%s)' % (self, o) + os.linesep)
        self.transport = None
        self.command = None

    def finish(self):
        '''End the session.  Safe to call in any state, any number of
        times.
        '''
        self.log.trace()
        if self.state == FINISHED:
            return
        try:
            if (self.state == TRANSACTION and self.transport is not None
                    and not self.transport.closed):
                try:
                    resp = self.command.quit()
                    if not resp.ok:
                        self.log.warning('QUIT refused; server said %s'
                                         % resp.text + os.linesep)
                except (popError, OSError) as o:
                    self.log.warning('error during QUIT (%s)' % o + os.linesep)
        finally:
            self._release()
            self.state = FINISHED

    def _check_transaction(self, what):
        if self.state == TRANSACTION:
            return
        if self.state == FINISHED:
            raise popSessionStateError('%s attempted after finish()' % what)
        raise popSessionStateError('%s attempted before start() completed'
                                   % what)

    def _run(self, func, *args):
        try:
            return func(*args)
        except (popProtocolViolation, popConnectionError):
            self._release()
            self.state = FINISHED
            raise

    def _check_handle(self, handle):
        if handle.source is not self:
            raise popSessionStateError('%r belongs to another session' % handle)

    def mail(self, number, size=None):
        '''Return a MailHandle for message <number> of this session.'''
        return MailHandle(number, size, self)

    # MessageSource
    def retr(self, number):
        self._check_transaction('RETR')
        return self._run(self.command.retr, number)

    def top(self, number, lines):
        self._check_transaction('TOP')
        return self._run(self.command.top, number, lines)

    def retrieve(self, handle, dest=None):
        self._check_transaction('retrieve')
        self._check_handle(handle)
        return handle.retrieve(dest)

    def retrieve_top(self, handle, lines, dest=None):
        self._check_transaction('retrieve_top')
        self._check_handle(handle)
        return handle.retrieve_top(lines, dest)
