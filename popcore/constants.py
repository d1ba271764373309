# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

# Log levels
(TRACE, DEBUG, MOREINFO, INFO, WARNING, ERROR, CRITICAL) = range(1, 8)

# Components of stack trace (indices to tuple)
FILENAME = 0
LINENO = 1
FUNCNAME = 2

# Ports
POP3_PORT = 110
POP3_SSL_PORT = 995

# Longest response line accepted from a server, terminator included
MAXLINE = 1 << 20

CRLF = b'\r\n'

# Session states
UNSTARTED = 'unstarted'
AUTHORIZING = 'authorizing'
TRANSACTION = 'transaction'
FINISHED = 'finished'
