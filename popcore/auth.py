# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''POP3 authentication.

A session holds exactly one strategy:

  PlainAuthentication    USER / PASS
  APOPAuthentication     APOP with an MD5 digest of the greeting challenge
  XOAUTH2Authentication  AUTH XOAUTH2 with a bearer token

Strategies never fall back to one another; a rejected login is reported as
popAuthenticationError with the server's text.
'''

__all__ = [
    'APOPAuthentication',
    'AuthenticationEngine',
    'AuthenticationStrategy',
    'PlainAuthentication',
    'XOAUTH2Authentication',
    'apop_digest',
    'get_strategy',
    'parse_challenge',
    'xoauth2_payload',
]

import os
import re
import base64
import hashlib

from popcore.exceptions import *
from popcore.utilities import *
from popcore.response import Continuation
import popcore.logging

# Printable ASCII on both sides of an "@", in angle brackets.  A greeting
# whose bracketed token does not match advertises no APOP challenge.
APOP_CHALLENGE = re.compile(br'<[!-~]+@[!-~]+>')


#######################################
def parse_challenge(greeting):
    '''Return the APOP challenge in a greeting line, brackets included, or
    None.
    '''
    m = APOP_CHALLENGE.search(tobytes(greeting))
    if not m:
        return None
    return m.group(0)

def apop_digest(challenge, secret):
    '''Lowercase hex MD5 of challenge followed by secret.'''
    return hashlib.md5(tobytes(challenge) + tobytes(secret)).hexdigest()

def xoauth2_payload(identifier, secret):
    '''Base64-encoded SASL XOAUTH2 initial response.'''
    # octal 1 / ctrl-A used as separator
    auth = 'user=%s\1auth=Bearer %s\1\1' % (identifier, secret)
    return base64.b64encode(auth.encode('utf-8'))


#######################################
class AuthenticationEngine(object):
    '''Runs one authentication exchange over a POP3Command.
    '''
    def __init__(self, command):
        self.log = popcore.logging.Logger()
        self.command = command

    def _check_credentials(self, identifier, secret):
        # a line break would end the command and start another one
        for value in (identifier, secret):
            if re.search(br'[\r\n]', tobytes(value)):
                raise popAuthenticationError(
                    'identifier and secret must not contain line breaks'
                )

    def _check(self, resp, step):
        if not resp.ok:
            self.log.debug('%s rejected: %s' % (step, resp.text) + os.linesep)
            raise popAuthenticationError(
                'authentication failed; server said %s' % resp.text
            )

    def authenticate_plain(self, identifier, secret):
        self.log.trace()
        self._check_credentials(identifier, secret)
        self._check(self.command.user(identifier), 'USER')
        self._check(self.command.pass_(secret), 'PASS')

    def authenticate_apop(self, identifier, secret, challenge):
        self.log.trace()
        self._check_credentials(identifier, secret)
        if not challenge:
            raise popAuthenticationError('not an APOP server; cannot login')
        digest = apop_digest(challenge, secret)
        self._check(self.command.apop(identifier, digest), 'APOP')

    def authenticate_oauth2(self, identifier, secret):
        self.log.trace()
        self._check_credentials(identifier, secret)
        resp = self.command.auth('XOAUTH2')
        if not isinstance(resp, Continuation):
            if resp.ok:
                raise popProtocolViolation(
                    'server accepted AUTH XOAUTH2 without a challenge'
                )
            raise popAuthenticationError(
                'XOAUTH2 not supported; server said %s' % resp.text
            )
        resp = self.command.auth_response(xoauth2_payload(identifier, secret))
        if isinstance(resp, Continuation):
            # SASL error challenge (JSON status); an empty response ends the
            # exchange and the server follows with -ERR
            self.log.debug('XOAUTH2 error challenge %s' % resp.text
                           + os.linesep)
            resp = self.command.auth_response(b'')
            if isinstance(resp, Continuation):
                raise popProtocolViolation(
                    'unexpected continuation after XOAUTH2 error challenge'
                )
        self._check(resp, 'XOAUTH2')


#######################################
class AuthenticationStrategy(object):
    '''Base class for the authentication strategies a session may hold.

    Sub-classes provide:

      name - configuration name of the strategy.
      authenticate(engine, credentials) - run the exchange.

    and may override with_challenge(challenge), which returns the strategy
    to use once the server greeting has been read.
    '''
    name = None

    def with_challenge(self, challenge):
        return self

    def authenticate(self, engine, credentials):
        raise NotImplementedError('virtual')

    def __repr__(self):
        return '%s()' % self.__class__.__name__


class PlainAuthentication(AuthenticationStrategy):
    name = 'plain'

    def authenticate(self, engine, credentials):
        engine.authenticate_plain(credentials.identifier, credentials.secret)


class APOPAuthentication(AuthenticationStrategy):
    name = 'apop'

    def __init__(self, challenge=None):
        self.challenge = challenge and tobytes(challenge) or None

    def __repr__(self):
        return 'APOPAuthentication(%r)' % self.challenge

    def with_challenge(self, challenge):
        if self.challenge:
            return self
        return APOPAuthentication(challenge)

    def authenticate(self, engine, credentials):
        if not self.challenge:
            raise popAuthenticationError('not an APOP server; cannot login')
        engine.authenticate_apop(credentials.identifier, credentials.secret,
                                 self.challenge)


class XOAUTH2Authentication(AuthenticationStrategy):
    name = 'xoauth2'

    def authenticate(self, engine, credentials):
        engine.authenticate_oauth2(credentials.identifier, credentials.secret)


STRATEGIES = {
    'plain' : PlainAuthentication,
    'user' : PlainAuthentication,
    'apop' : APOPAuthentication,
    'xoauth2' : XOAUTH2Authentication,
    'oauth2' : XOAUTH2Authentication,
}

def get_strategy(spec):
    '''Return an AuthenticationStrategy for an instance or a name.'''
    if isinstance(spec, AuthenticationStrategy):
        return spec
    try:
        return STRATEGIES[str(spec).lower()]()
    except KeyError:
        raise popConfigurationError(
            'unknown authentication scheme "%s" (use one of %s)'
            % (spec, ', '.join(sorted(STRATEGIES)))
        )
