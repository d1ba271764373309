# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''Default byte-stream transport for POP3 sessions.

A transport is anything providing:

  sendline(data) - write one line; the CRLF terminator is appended.
  readline() - return one line including its terminator.  Raises
               popConnectionError at end of stream.
  close() - release the stream.  Must be safe to call twice.
  closed - true once close() has been called.

POP3Transport implements this over a plain or SSL-wrapped socket.
'''

__all__ = [
    'POP3Transport',
    'connect',
]

import os
import socket
import ssl

from popcore.exceptions import *
from popcore.constants import *
from popcore.utilities import *
import popcore.logging


#######################################
class POP3Transport(object):
    '''Line-oriented wrapper around a connected socket.
    '''
    def __init__(self, sock):
        self.log = popcore.logging.Logger()
        self.sock = sock
        self.file = sock.makefile('rb')
        self.closed = False
        try:
            peer = sock.getpeername()
        except OSError:
            peer = None
        if isinstance(peer, tuple) and len(peer) >= 2:
            self.remoteaddr = '%s:%s' % peer[:2]
        else:
            self.remoteaddr = str(peer)

    def __str__(self):
        return 'POP3Transport(%s)' % self.remoteaddr

    def sendline(self, data):
        if self.closed:
            raise popConnectionError('transport already closed')
        try:
            self.sock.sendall(data + CRLF)
        except OSError as o:
            raise popConnectionError('error sending to %s (%s)'
                                     % (self.remoteaddr, o))

    def readline(self):
        if self.closed:
            raise popConnectionError('transport already closed')
        try:
            line = self.file.readline(MAXLINE + 1)
        except OSError as o:
            raise popConnectionError('error reading from %s (%s)'
                                     % (self.remoteaddr, o))
        if not line:
            raise popConnectionError('connection closed by %s'
                                     % self.remoteaddr)
        if len(line) > MAXLINE:
            raise popProtocolViolation('line longer than %d octets from %s'
                                       % (MAXLINE, self.remoteaddr))
        return line

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self.file.close()
        finally:
            try:
                self.sock.close()
            except OSError as o:
                self.log.debug('error closing socket (%s)' % o + os.linesep)


#######################################
def _ssl_context(conf):
    (keyfile, certfile) = check_ssl_key_and_cert(conf)
    ca_certs = check_ca_certs(conf)
    ssl_ciphers = check_ssl_ciphers(conf)
    if ca_certs:
        context = ssl.create_default_context(cafile=ca_certs)
    else:
        # No CA bundle configured: encrypt, but do not verify the peer
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if certfile:
        context.load_cert_chain(certfile, keyfile)
    if ssl_ciphers:
        context.set_ciphers(ssl_ciphers)
    return context


def connect(conf):
    '''Open a transport to conf['server']:conf['port'], wrapped in SSL if
    conf['use_ssl'] is set.
    '''
    log = popcore.logging.Logger()
    server = conf['server']
    port = conf['port']
    log.trace('connecting to %s:%s (ssl=%s)' % (server, port, conf['use_ssl'])
              + os.linesep)
    try:
        sock = socket.create_connection((server, port), conf['timeout'])
    except socket.gaierror as o:
        raise popConnectionError(
            'error resolving name %s during connect (%s)' % (server, o)
        )
    except OSError as o:
        raise popConnectionError('error connecting to %s:%s (%s)'
                                 % (server, port, o))
    if conf['use_ssl']:
        try:
            context = _ssl_context(conf)
            sock = context.wrap_socket(
                sock,
                server_hostname=conf.get('ssl_cert_hostname') or server
            )
        except (ssl.SSLError, OSError) as o:
            sock.close()
            raise popConnectionError('SSL error connecting to %s:%s (%s)'
                                     % (server, port, o))
        except popConfigurationError:
            sock.close()
            raise
        log.moreinfo('SSL connection to %s:%s established using cipher %s'
                     % (server, port, ':'.join(map(str, sock.cipher() or ())))
                     + os.linesep)
    transport = POP3Transport(sock)
    log.trace('POP3 connection %s established' % transport + os.linesep)
    return transport
