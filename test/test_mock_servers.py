import hashlib
import os
import re
import socket
import threading
import time

import pytest

from popcore.auth import APOPAuthentication
from popcore.exceptions import *
from popcore.session import POP3Session, Credentials

USERS = {'user': 'pass'}
OK_USER = 'user'
STAMP_BASE = '%d.%d@localhost' % (os.getpid(), int(time.time()))
# base64 of a dummy xoauth2 token
OAUTH2_PAYLOAD = b'dXNlcj1tYWlsQG1haWwuY29tAWF1dGg9QmVhcmVyIHJhbmRvbXRva2VuAQE='

MESSAGES = {
    1: ['Subject: first', '', 'Hello World!', '.leading dot', '..two dots'],
    2: ['Subject: second', 'From: from@example.com', '', 'one', 'two',
        'three'],
}


class MockPOP3Server:
    '''Scripted POP3 server answering one connection in a thread.'''
    def __init__(self, apop=None, oauth2=False, messages=MESSAGES):
        self.apop = apop
        self.oauth2 = oauth2
        self.messages = messages
        self.received = []
        self.errors = []
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.bind(("127.0.0.1", 0))
        self.server.listen(1)
        self.server.settimeout(10)
        self.thread = threading.Thread(target=self.serve, daemon=True)
        self.thread.start()

    @property
    def port(self):
        return self.server.getsockname()[1]

    def session(self, **args):
        return POP3Session(server='127.0.0.1', port=self.port, timeout=10,
                           **args)

    def join(self):
        self.thread.join(10)
        assert not self.thread.is_alive()
        assert not self.errors, self.errors

    def serve(self):
        try:
            sock, _ = self.server.accept()
        except OSError as o:
            self.errors.append(o)
            return
        try:
            sock.settimeout(10)
            self.loop(sock)
        except Exception as o:
            self.errors.append(o)
        finally:
            sock.close()
            self.server.close()

    def send_message(self, sock, lines):
        sock.sendall(b'+OK\r\n')
        for line in lines:
            if line.startswith('.'):
                line = '.' + line
            sock.sendall(line.encode() + b'\r\n')
        sock.sendall(b'.\r\n')

    def loop(self, sock):
        f = sock.makefile('rb')
        if self.apop is not None:
            sock.sendall(b'+OK ready <' + self.apop + b'>\r\n')
        else:
            sock.sendall(b'+OK ready\r\n')
        user = None
        oauth2_auth_started = False
        for line in f:
            self.received.append(line)
            if oauth2_auth_started:
                oauth2_auth_started = False
                if line.rstrip(b'\r\n') == OAUTH2_PAYLOAD:
                    sock.sendall(b'+OK\r\n')
                else:
                    sock.sendall(b'-ERR Authentication failure: unknown user '
                                 b'name or bad password.\r\n')
                continue
            m = re.match(rb'^(USER|PASS|APOP|RETR|TOP) (.+)\r\n$', line)
            if m:
                verb, arg = m.group(1), m.group(2).decode()
                if verb == b'USER':
                    user = arg
                    if user in USERS:
                        sock.sendall(b'+OK\r\n')
                    else:
                        sock.sendall(b'-ERR unknown user\r\n')
                elif verb == b'PASS':
                    if USERS.get(user) == arg:
                        sock.sendall(b'+OK\r\n')
                    else:
                        sock.sendall(b'-ERR invalid password\r\n')
                elif verb == b'APOP':
                    user, digest = arg.split(' ', 1)
                    expected = hashlib.md5(
                        b'<' + (self.apop or b'') + b'>'
                        + USERS.get(user, '').encode()
                    ).hexdigest()
                    if self.apop and digest == expected:
                        sock.sendall(b'+OK\r\n')
                    else:
                        sock.sendall(b'-ERR authentication failed\r\n')
                elif verb == b'RETR':
                    lines = self.messages.get(int(arg))
                    if lines is None:
                        sock.sendall(b'-ERR no such message\r\n')
                    else:
                        self.send_message(sock, lines)
                elif verb == b'TOP':
                    number, count = [int(x) for x in arg.split()]
                    lines = self.messages.get(number)
                    if lines is None:
                        sock.sendall(b'-ERR no such message\r\n')
                    else:
                        if '' in lines:
                            blank = lines.index('')
                            lines = lines[:blank + 1 + count]
                        # otherwise the whole message is sent
                        self.send_message(sock, lines)
            elif line.startswith(b'QUIT'):
                sock.sendall(b'+OK bye\r\n')
                return
            elif line == b'AUTH XOAUTH2\r\n':
                if not self.oauth2:
                    sock.sendall(b'-ERR command not recognized\r\n')
                    continue
                sock.sendall(b'+\r\n')
                oauth2_auth_started = True
            else:
                sock.sendall(b'-ERR command not recognized\r\n')
                return


def test_pop_auth_ok():
    server = MockPOP3Server()
    with server.session() as pop:
        assert pop.uses_apop() is False
        assert pop.uses_oauth2() is False
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        assert pop.started()
        assert pop.getwelcome() == 'ready'
    server.join()
    assert server.received == [b'USER user\r\n', b'PASS pass\r\n',
                               b'QUIT\r\n']


def test_pop_auth_ng():
    server = MockPOP3Server()
    with server.session() as pop:
        with pytest.raises(popAuthenticationError) as e:
            pop.start(Credentials(OK_USER, 'bad password'))
        assert 'invalid password' in str(e.value)
        assert not pop.started()
    server.join()
    assert b'QUIT\r\n' not in server.received


def test_apop_ok():
    server = MockPOP3Server(apop=STAMP_BASE.encode())
    with server.session(auth='apop') as pop:
        assert pop.uses_apop() is True
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        assert pop.started()
        assert pop.challenge == b'<' + STAMP_BASE.encode() + b'>'
    server.join()


def test_apop_ng():
    server = MockPOP3Server(apop=STAMP_BASE.encode())
    with server.session(auth='apop') as pop:
        with pytest.raises(popAuthenticationError):
            pop.start(Credentials(OK_USER, 'bad password'))
    server.join()


@pytest.mark.parametrize("stamp", [
    b'\x80' + STAMP_BASE.encode(),
    STAMP_BASE.replace('@', '.').encode(),
])
def test_apop_invalid(stamp):
    server = MockPOP3Server(apop=stamp)
    with server.session(auth=APOPAuthentication()) as pop:
        assert pop.uses_apop() is True
        with pytest.raises(popAuthenticationError):
            pop.start(Credentials(OK_USER, USERS[OK_USER]))
        assert not pop.started()
    server.join()


def test_oauth2():
    server = MockPOP3Server(oauth2=True)
    with server.session(auth='xoauth2') as pop:
        assert pop.uses_oauth2() is True
        assert pop.uses_apop() is False
        pop.start(Credentials('mail@mail.com', 'randomtoken'))
        assert pop.started()
    server.join()
    assert server.received[1] == OAUTH2_PAYLOAD + b'\r\n'


def test_oauth2_invalid():
    server = MockPOP3Server(oauth2=True)
    with server.session(auth='xoauth2') as pop:
        with pytest.raises(popAuthenticationError) as e:
            pop.start(Credentials('mail@mail.com', 'wrongtoken'))
        assert 'Authentication failure' in str(e.value)
    server.join()


def test_oauth2_unsupported():
    server = MockPOP3Server(oauth2=False)
    with server.session(auth='xoauth2') as pop:
        with pytest.raises(popAuthenticationError) as e:
            pop.start(Credentials('mail@mail.com', 'randomtoken'))
        assert 'not supported' in str(e.value)
    server.join()


def test_retry_after_failed_login():
    server = MockPOP3Server()
    with server.session() as pop:
        with pytest.raises(popAuthenticationError):
            pop.start(Credentials(OK_USER, 'bad password'))
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        assert pop.started()
    server.join()


def test_retrieve_is_byte_exact():
    server = MockPOP3Server()
    with server.session() as pop:
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        data = pop.mail(1).retrieve()
        assert data == (b'Subject: first\r\n\r\nHello World!\r\n'
                        b'.leading dot\r\n..two dots\r\n')
        assert isinstance(data, bytearray)
        assert pop.retrieve(pop.mail(2)).endswith(b'two\r\nthree\r\n')
    server.join()


def test_retrieve_top():
    server = MockPOP3Server()
    with server.session() as pop:
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        top = pop.retrieve_top(pop.mail(2), 1)
        assert top == (b'Subject: second\r\nFrom: from@example.com\r\n\r\n'
                       b'one\r\n')
        assert pop.mail(1).header() == b'Subject: first\r\n\r\n'
    server.join()


def test_retrieve_top_without_separator():
    server = MockPOP3Server(messages={1: ['[ruby-core:85210]',
                                          '[Bug #14416]']})
    with server.session() as pop:
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        assert pop.mail(1).retrieve_top(1) == b'[ruby-core:85210]\r\n'
        assert pop.mail(1).retrieve() == (b'[ruby-core:85210]\r\n'
                                          b'[Bug #14416]\r\n')
    server.join()


def test_retrieval_error_keeps_session_usable():
    server = MockPOP3Server()
    with server.session() as pop:
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
        with pytest.raises(popRetrievalError) as e:
            pop.mail(99).retrieve()
        assert 'no such message' in str(e.value)
        with pytest.raises(popRetrievalError):
            pop.mail(99).retrieve_top(3)
        assert pop.started()
        assert pop.mail(1).retrieve().startswith(b'Subject: first\r\n')
    server.join()
    assert server.received[-1] == b'QUIT\r\n'


def test_finish_twice():
    server = MockPOP3Server()
    pop = server.session()
    pop.start(Credentials(OK_USER, USERS[OK_USER]))
    pop.finish()
    pop.finish()
    server.join()
    with pytest.raises(popSessionStateError):
        pop.mail(1).retrieve()


def test_auth_only():
    server = MockPOP3Server()
    pop = server.session()
    pop.auth_only(Credentials(OK_USER, USERS[OK_USER]))
    assert not pop.started()
    server.join()
    assert server.received == [b'USER user\r\n', b'PASS pass\r\n',
                               b'QUIT\r\n']


def test_connection_refused():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    pop = POP3Session(server='127.0.0.1', port=port, timeout=5)
    with pytest.raises(popConnectionError):
        pop.start(Credentials(OK_USER, USERS[OK_USER]))
    pop.finish()
    with pytest.raises(popSessionStateError):
        pop.mail(1).retrieve()
