# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''Utility functions for popcore.
'''

__all__ = [
    'check_ca_certs',
    'check_ssl_ciphers',
    'check_ssl_key_and_cert',
    'eval_bool',
    'expand_user_vars',
    'format_params',
    'mask_command',
    'tobytes',
    'tostr',
]

import os
import os.path
import re

from popcore.exceptions import *

tostr = lambda lts: bytes(lts).decode('utf-8', 'replace')

def tobytes(x):
    if isinstance(x, (bytes, bytearray)):
        return bytes(x)
    return x.encode('utf-8')

_bool_values = {
    'true'  : True,
    'yes'   : True,
    'on'    : True,
    '1'     : True,
    'false' : False,
    'no'    : False,
    'off'   : False,
    '0'     : False
}

# Commands whose arguments must never show up in a log, mapped to the number
# of leading arguments that may be shown.
_secret_commands = {
    'PASS' : 0,
    'APOP' : 1,
}


#######################################
def eval_bool(s):
    '''Handle boolean values intelligently.
    '''
    try:
        return _bool_values[str(s).lower()]
    except KeyError:
        raise popConfigurationError(
            'boolean parameter requires value to be one of true or false, '
            'not "%s"' % s
        )

#######################################
def expand_user_vars(s):
    '''Return a string expanded for both leading "~/" or "~username/" and
    environment variables in the form "$varname" or "${varname}".
    '''
    return os.path.expanduser(os.path.expandvars(s))

#######################################
def format_params(d, maskitems=(), skipitems=()):
    '''Take a dictionary of parameters and return a string summary.
    '''
    s = ''
    for key in list(sorted(d.keys())):
        if key in skipitems:
            continue
        if s:
            s += ','
        if key in maskitems:
            s += '%s=*' % key
        else:
            s += '%s="%s"' % (key, d[key])
    return s

#######################################
def mask_command(line):
    '''Return a command line fit for logging, with secrets replaced by *.

    A line that is not a known command (the base64 XOAUTH2 response, for
    instance) is masked entirely.
    '''
    parts = line.split(' ')
    verb = parts[0].upper()
    if verb in _secret_commands:
        shown = _secret_commands[verb] + 1
        return ' '.join(parts[:shown] + ['*'] * (len(parts) - shown))
    if not re.match(r'^[A-Za-z]{3,4}$', parts[0]):
        return '*'
    return line

#######################################
def check_ssl_key_and_cert(conf):
    keyfile = conf['keyfile']
    if keyfile is not None:
        keyfile = expand_user_vars(keyfile)
    certfile = conf['certfile']
    if certfile is not None:
        certfile = expand_user_vars(certfile)
    if keyfile and not os.path.isfile(keyfile):
        raise popConfigurationError(
            'optional keyfile must be path to a valid file'
        )
    if certfile and not os.path.isfile(certfile):
        raise popConfigurationError(
            'optional certfile must be path to a valid file'
        )
    if (keyfile is None) ^ (certfile is None):
        raise popConfigurationError(
            'optional certfile and keyfile must be supplied together'
        )
    return (keyfile, certfile)

#######################################
def check_ca_certs(conf):
    ca_certs = conf['ca_certs']
    if ca_certs is not None:
        ca_certs = expand_user_vars(ca_certs)
    if ca_certs and not os.path.isfile(ca_certs):
        raise popConfigurationError(
            'optional ca_certs must be path to a valid file'
        )
    return ca_certs

#######################################
def check_ssl_ciphers(conf):
    ssl_ciphers = conf['ssl_ciphers']
    if ssl_ciphers:
        if re.search(r'[^a-zA-z0-9, :!\-+@]', ssl_ciphers):
            raise popConfigurationError(
                'invalid character in ssl_ciphers'
            )
    return ssl_ciphers
