# docs/COPYING 2a + DRY: https://github.com/getmail6/getmail6
# Please refer to the git history regarding who changed what and when in this file.

'''Exceptions raised by popcore.
'''

__all__ = [
    'popError',
    'popConfigurationError',
    'popOperationError',
    'popConnectionError',
    'popProtocolViolation',
    'popAuthenticationError',
    'popRetrievalError',
    'popSessionStateError',
]

# Base class for all popcore exceptions
class popError(Exception):
    '''Base class for all popcore exceptions.'''
    pass

# Specific exception classes
class popConfigurationError(popError):
    '''Exception raised when a session is constructed with bad parameters.'''
    pass

class popSessionStateError(popError):
    '''Exception raised when an operation is attempted in the wrong session
    state: retrieving before start() completed or after finish(), or
    calling start() twice.'''
    pass

class popOperationError(popError):
    '''Exception raised when a runtime error is detected.'''
    pass

class popConnectionError(popOperationError):
    '''The transport failed: could not connect, the peer closed the
    connection, or a read or write timed out.'''
    pass

class popProtocolViolation(popOperationError):
    '''The server sent something that is not a valid POP3 response.  Fatal
    to the session.'''
    pass

class popAuthenticationError(popOperationError):
    '''Error raised when the server rejects the credentials or does not
    support the selected authentication scheme.'''
    pass

class popRetrievalError(popOperationError):
    '''Exception raised when the server refuses to hand over a message
    (-ERR to RETR or TOP).  The session remains usable.'''
    pass
