# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''A small POP3 client core.

popcore opens a session with a POP3 server, authenticates with plaintext
USER/PASS, APOP or XOAUTH2, and retrieves messages with RETR and TOP,
handing back the raw message bytes exactly as the server delivered them.
'''

import sys

__version__ = '1.0.0'
__license__ = 'GNU GPL version 2'

__py_required__ = '3.7.0'
__py_required_hex__ = 0x30700f0

if sys.hexversion < __py_required_hex__:
    raise ImportError('popcore version %s requires Python version %s '
                      'or later'%(__version__,__py_required__))

__all__ = [
    'auth',
    'baseclasses',
    'command',
    'constants',
    'exceptions',
    'logging',
    'response',
    'session',
    'transport',
    'utilities',
]
